"""Shopu HTTP API package: tenant, storefront, admin and payment routers."""
