"""
Record locations. Every component reads and writes through these.
"""

from capdrop.core.models import ClaimRecord, Config, ContractVersion, SaleInfo
from capdrop.storage.items import Item, Map

CONFIG        = Item("config", Config)
SALE_INFO     = Item("sale_info", SaleInfo)
CONTRACT_INFO = Item("contract_info", ContractVersion)
CLAIMS        = Map("user_info", ClaimRecord)
