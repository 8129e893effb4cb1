from bookstore.models.user import User
from bookstore.models.book import Book
from bookstore.models.cart import CartItem
from bookstore.models.order_item import OrderItem
from bookstore.models.order import Order
from bookstore.models.order_event import OrderEvent
from bookstore.models.coupon import Coupon, CouponUsage
from bookstore.models.exchange_rate import ExchangeRate
from bookstore.models.store_setting import StoreSetting
from bookstore.models.license import License, DigitalLicense, PhysicalLicense
from bookstore.models.access_log import AccessLogEntry, AccessEvent

# add ALL models here
