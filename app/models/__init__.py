from app.models.user import User, UserRole
from app.models.category import Category
from app.models.ebook import Ebook, EbookFormat
from app.models.cart import CartItem
from app.models.purchase import Purchase
from app.models.site_config import SiteConfig

# add ALL models here
