from menumagic.models.user import User
from menumagic.models.restaurant import Restaurant
from menumagic.models.category import Category
from menumagic.models.supplier import Supplier
from menumagic.models.ingredient import Ingredient
from menumagic.models.inventory import InventoryAdjustment, InventoryStockLevel
from menumagic.models.recipe import Recipe, RecipeIngredient
from menumagic.models.dish import Dish
from menumagic.models.order import Order, OrderItem, Payment
from menumagic.models.digital_menu import DigitalMenu, DigitalMenuItem
from menumagic.models.audit_log import AuditLog
from menumagic.models.menu_template import MenuTemplate
from menumagic.models.brand_kit import BrandKit
