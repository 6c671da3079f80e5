"""Constants shared by the domain services."""

from spendmap.domain.entities import Category, CategoryWithSubcategories

DEFAULT_CURRENCY = "USD"

# Keys of the persisted documents
MERGED_FILES_KEY = "mergedFiles"
TRANSACTIONS_KEY = "transactions"
CATEGORIES_KEY = "categories"
FORMAT_MAPPINGS_KEY = "fileFormatMappings"
CATEGORY_MAPPINGS_KEY = "categoryMappings"

DEFAULT_CATEGORIES: dict[str, Category] = {
    "Food & Dining": CategoryWithSubcategories(
        color="#FF6B6B",
        order=1,
        subcategories={"Restaurants": "#FF5252", "Groceries": "#FF7043", "Fast Food": "#FF8A65"},
    ),
    "Transportation": CategoryWithSubcategories(
        color="#4ECDC4",
        order=2,
        subcategories={"Gas": "#26C6DA", "Public Transit": "#4DB6AC", "Parking": "#80CBC4"},
    ),
    "Shopping": CategoryWithSubcategories(
        color="#45B7D1",
        order=3,
        subcategories={"Clothing": "#42A5F5", "Electronics": "#5C6BC0", "Home": "#7986CB"},
    ),
    "Entertainment": CategoryWithSubcategories(
        color="#96CEB4",
        order=4,
        subcategories={"Movies": "#81C784", "Games": "#A5D6A7", "Events": "#C8E6C9"},
    ),
    "Bills & Utilities": CategoryWithSubcategories(
        color="#FFEAA7",
        order=5,
        subcategories={"Electricity": "#FFF176", "Water": "#FFEB3B", "Internet": "#FFEE58"},
    ),
    "Income": CategoryWithSubcategories(
        color="#6C5CE7",
        order=6,
        subcategories={"Salary": "#A29BFE", "Freelance": "#74B9FF", "Investment": "#0984E3"},
    ),
}

# Fallback palette for categories created without an explicit color
CATEGORY_PALETTE = (
    "#FF6384",
    "#36A2EB",
    "#FFCE56",
    "#4BC0C0",
    "#9966FF",
    "#FF9F40",
    "#8AC249",
    "#EA526F",
    "#7B68EE",
    "#2ECC71",
)
