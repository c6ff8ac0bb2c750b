# feedtrade/models/__init__.py
from .user import User, UserRole
from .contact import Contact, ContactType, Account
from .ledger import AccountTransaction, TransactionType, ReferenceType
from .order import Sale, Purchase, OrderStatus, PricingModel
from .delivery import Delivery, FreightPayer
from .payment import Payment, PaymentDirection, PaymentMethod
from .check import Check, CheckType, CheckDirection, CheckStatus, CHECK_TRANSITIONS
from .carrier import Carrier, Vehicle, CarrierTransaction, CarrierTransactionType
from .audit import AuditLog, AuditAction
from .annotation import Annotation
