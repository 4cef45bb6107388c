"""
Domain enums for the recipe manager.
Values are the strings stored in MongoDB documents.
"""

import enum


class Unit(str, enum.Enum):
    """Fixed unit vocabulary for ingredient quantities"""

    KG = "kg"
    G = "g"
    L = "l"
    ML = "ml"
    PIECES = "piezas"
    CUPS = "tazas"
    TABLESPOONS = "cucharadas"
    TEASPOONS = "cucharaditas"
    CANS = "latas"
    PACKAGES = "paquetes"


class IngredientCategory(str, enum.Enum):
    """Ingredient categories; declaration order is the shopping aisle order"""

    PROTEIN = "proteina"
    VEGETABLES = "vegetales"
    FRUITS = "frutas"
    DAIRY = "lacteos"
    GRAINS = "granos"
    SPICES = "especias"
    OILS = "aceites"
    OTHER = "otros"


class RecipeCategory(str, enum.Enum):
    """Dish type of a recipe"""

    SOUP = "sopa"
    MAIN = "plato-fuerte"
    SIDE = "guarnicion"
    DESSERT = "postre"
    BEVERAGE = "bebida"
    STARTER = "entrada"


class Difficulty(str, enum.Enum):
    EASY = "facil"
    MEDIUM = "medio"
    HARD = "dificil"


class Allergen(str, enum.Enum):
    GLUTEN = "gluten"
    DAIRY = "lacteos"
    EGGS = "huevos"
    NUTS = "nueces"
    SHELLFISH = "mariscos"
    SOY = "soya"
    FISH = "pescado"
    PEANUTS = "cacahuates"


class DietaryRestriction(str, enum.Enum):
    VEGETARIAN = "vegetariano"
    VEGAN = "vegano"
    GLUTEN_FREE = "sin-gluten"
    DAIRY_FREE = "sin-lacteos"
    KETO = "keto"
    PALEO = "paleo"
    LOW_SODIUM = "bajo-sodio"
    DIABETIC = "diabetico"


class Weekday(str, enum.Enum):
    """Day names, declared in date.weekday() order (Monday first)"""

    MONDAY = "lunes"
    TUESDAY = "martes"
    WEDNESDAY = "miercoles"
    THURSDAY = "jueves"
    FRIDAY = "viernes"
    SATURDAY = "sabado"
    SUNDAY = "domingo"

    @classmethod
    def from_date(cls, value) -> "Weekday":
        return list(cls)[value.weekday()]

    @property
    def index(self) -> int:
        return list(Weekday).index(self)


class PlanStatus(str, enum.Enum):
    """Meal plan status (free-form, no transition rules)"""

    DRAFT = "borrador"
    ACTIVE = "activo"
    COMPLETED = "completado"
    PAUSED = "pausado"
    CANCELLED = "cancelado"


class ShoppingPriority(str, enum.Enum):
    HIGH = "alta"
    MEDIUM = "media"
    LOW = "baja"


class SharePermission(str, enum.Enum):
    READ = "lectura"
    EDIT = "edicion"


class RestrictionLevel(str, enum.Enum):
    STRICT = "estricto"
    MODERATE = "moderado"
    OCCASIONAL = "ocasional"


class AllergySeverity(str, enum.Enum):
    MILD = "leve"
    MODERATE = "moderada"
    SEVERE = "severa"


class CookingLevel(str, enum.Enum):
    BEGINNER = "principiante"
    INTERMEDIATE = "intermedio"
    ADVANCED = "avanzado"


class LegacyPlanStatus(str, enum.Enum):
    """Status values found in the legacy ``planes`` collection"""

    DRAFT = "borrador"
    ACTIVE = "activo"
    COMPLETED = "completado"
    ARCHIVED = "archivado"


class LegacyMealType(str, enum.Enum):
    """Meal type of a legacy plan-recipe row"""

    BREAKFAST = "desayuno"
    LUNCH = "comida"
    DINNER = "cena"


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
