# inventory/apps.py

"""
INVENTORY APP CONFIG

Hospital pharmacy stock:
- Purchase batches (draft -> finalized) with embedded medicine lines
- Stock views (per medicine, expiring soon, low stock, dashboard)
- Expired stock discard + discard history
- Medicine catalog
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory"
