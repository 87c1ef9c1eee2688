"""
Ingredient Constants

Contains ingredient aliases and the word lists used to clean supplier
invoice descriptions before matching them to the ingredient catalog.
"""

# Ingredient name aliases (normalized name -> canonical name)
INGREDIENT_ALIASES = {
    'ground beef': 'Ground Beef',
    'beef ground': 'Ground Beef',
    'minced beef': 'Ground Beef',
    'beef chuck ground': 'Ground Beef',
    'chicken breast': 'Chicken Breast',
    'breast chicken': 'Chicken Breast',
    'chicken brst': 'Chicken Breast',
    'chicken thigh': 'Chicken Thigh',
    'thigh chicken': 'Chicken Thigh',
    'green onion': 'Green Onion',
    'scallion': 'Green Onion',
    'spring onion': 'Green Onion',
    'bell pepper': 'Bell Pepper',
    'garlic clove': 'Garlic',
    'clove garlic': 'Garlic',
    'garlic peeled': 'Garlic',
    'olive oil': 'Olive Oil',
    'extra virgin olive oil': 'Olive Oil',
    'evoo': 'Olive Oil',
    'vegetable oil': 'Vegetable Oil',
    'canola oil': 'Vegetable Oil',
    'fryer oil': 'Vegetable Oil',
    'heavy cream': 'Heavy Cream',
    'whipping cream': 'Heavy Cream',
    'heavy whipping cream': 'Heavy Cream',
    'sour cream': 'Sour Cream',
    'cream cheese': 'Cream Cheese',
    'parmesan cheese': 'Parmesan',
    'parmigiano': 'Parmesan',
    'parmigiano reggiano': 'Parmesan',
    'cheddar cheese': 'Cheddar Cheese',
    'mozzarella cheese': 'Mozzarella',
    'kosher salt': 'Salt',
    'sea salt': 'Salt',
    'table salt': 'Salt',
    'black pepper': 'Black Pepper',
    'ground pepper': 'Black Pepper',
    'ground black pepper': 'Black Pepper',
    'egg': 'Egg',
    'shell egg': 'Egg',
    'yellow onion': 'Onion',
    'white onion': 'Onion',
    'red onion': 'Red Onion',
    'all purpose flour': 'Flour',
    'all-purpose flour': 'Flour',
    'ap flour': 'Flour',
    'granulated sugar': 'Sugar',
    'white sugar': 'Sugar',
    'cane sugar': 'Sugar',
    'brown sugar': 'Brown Sugar',
    'unsalted butter': 'Butter',
    'salted butter': 'Butter',
    'romaine heart': 'Romaine',
    'burger bun': 'Burger Bun',
    'hamburger bun': 'Burger Bun',
}

# Descriptors dropped before matching (set for O(1) lookup)
DESCRIPTOR_WORDS = {
    'fresh', 'dried', 'chopped', 'diced', 'sliced', 'minced',
    'large', 'small', 'medium', 'whole', 'raw', 'cooked',
    'boneless', 'skinless', 'organic', 'frozen', 'canned',
    'a', 'an', 'the', 'of',
}

# Supplier invoice noise (pack sizes, grades, abbreviations)
INVOICE_NOISE_WORDS = {
    'case', 'cs', 'bulk', 'pack', 'pk', 'bag', 'box', 'ctn', 'carton',
    'grade', 'premium', 'select', 'choice', 'fancy', 'bnls', 'sknls',
    'iqf', 'usda', 'natural',
}

# Plurals that the generic "strip trailing s" rule gets wrong
SINGULAR_MAP = {
    'tomatoes': 'tomato',
    'potatoes': 'potato',
    'leaves': 'leaf',
    'berries': 'berry',
    'cherries': 'cherry',
}

# Words that naturally end in "s"
NO_STRIP_S = {'cheese', 'rice', 'grass', 'molasses', 'hummus', 'asparagus', 'swiss'}
