from .user import User
from .building import Building
from .contractor import Contractor, ContractorReview

from .rfq import RFQ
from .quotation import Quotation
from .admin_quote import AdminQuote
from .order import Order

from .invite import QuoteInvite
from .notification import Notification

__all__ = [n for n in dir() if n[:1].isupper()]
