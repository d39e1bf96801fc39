from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

# ============================================================================
# ENUMS (System Constants)
# ============================================================================

class PurchaseCatalog(str, Enum):
    """Product catalogs. Values double as the MongoDB collection names."""
    IN_APP_PURCHASES = "inAppPurchases"
    STICKER_PACKS = "stickerPacks"

class ProductType(str, Enum):
    PHYSICAL = "physical"
    COINS = "coins"
    SPINS = "spins"
    STICKER_PACK = "stickerPack"

class PaymentLedgerStatus(str, Enum):
    PROCESSING = "PROCESSING"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"

# Telegram Stars
STARS_CURRENCY = "XTR"
PHYSICAL_CURRENCY = "USD"

# ============================================================================
# CATALOG
# ============================================================================

class Product(BaseModel):
    """Product definition owned by the catalog collections.

    `price` is USD for in-app purchases and physical goods, coins for sticker packs.
    `amount` is the number of coins or spins a pack grants.
    """
    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    product_id: str
    catalog: PurchaseCatalog
    name: str
    description: str = ""
    image_url: Optional[str] = None
    price: float
    type: Optional[ProductType] = None
    amount: int = 0

    @property
    def is_physical(self) -> bool:
        return self.type == ProductType.PHYSICAL

# ============================================================================
# INVOICES
# ============================================================================

class InvoicePayload(BaseModel):
    """Correlates a completed payment with the purchase that created its invoice."""
    catalog: str
    product_id: str
    user_id: str

class InvoiceLineItem(BaseModel):
    label: str
    amount: int  # Minor units (cents) or whole Stars

class InvoiceRequest(BaseModel):
    title: str
    description: str
    payload: str
    currency: str
    prices: List[InvoiceLineItem]
    provider_token: str = ""  # Empty for Telegram Stars
    photo_url: Optional[str] = None
    photo_width: int = 600
    photo_height: int = 400
    need_shipping_address: bool = False

# ============================================================================
# PAYMENT LEDGER
# ============================================================================

class PaymentLedgerEntry(BaseModel):
    """One record per Telegram charge. Keyed by telegram_payment_charge_id."""
    model_config = ConfigDict(extra="ignore")

    telegram_payment_charge_id: str
    provider_payment_charge_id: Optional[str] = None
    chat_id: int
    user_id: Optional[str] = None
    catalog: Optional[str] = None
    product_id: Optional[str] = None
    total_amount: int
    currency: str
    status: PaymentLedgerStatus = PaymentLedgerStatus.PROCESSING
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    processed_at: Optional[datetime] = None
