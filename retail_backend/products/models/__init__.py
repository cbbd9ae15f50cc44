from .category import Category
from .product import Product
from .stock_batch import StockBatch
from .stock_movement import StockMovement
from .stock_transfer import StockTransfer, StockTransferItem

__all__ = [
    "Category",
    "Product",
    "StockBatch",
    "StockMovement",
    "StockTransfer",
    "StockTransferItem",
]
