"""Catalog API: category, subcategory and product catalog service."""
