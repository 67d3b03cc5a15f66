"""Site category structure: main categories with their subcategories."""

CATEGORY_STRUCTURE = {
    'home': {
        'label': 'Home',
        'subcategories': ['breaking', 'featured', 'trending', 'latest'],
    },
    'politics': {
        'label': 'Politics',
        'subcategories': ['local', 'national', 'international', 'elections', 'policy'],
    },
    'minority-news': {
        'label': 'Minority News',
        'subcategories': ['civil-rights', 'community', 'representation', 'equality', 'diversity'],
    },
    'local-news': {
        'label': 'Local News',
        'subcategories': ['city', 'county', 'state', 'community', 'government', 'events'],
    },
    'feminist': {
        'label': 'Feminist',
        'subcategories': ['rights', 'equality', 'workplace', 'politics', 'culture', 'activism'],
    },
    'fact-check': {
        'label': 'Fact Check',
        'subcategories': ['politics', 'health', 'science', 'social-media', 'misinformation'],
    },
    'factcheck-response': {
        'label': 'FactCheck Response',
        'subcategories': ['verified', 'debunked', 'investigation', 'follow-up', 'clarification'],
    },
    'general': {
        'label': 'General',
        'subcategories': ['breaking', 'featured', 'trending', 'latest'],
    },
}


def get_all_category_options():
    """Main categories plus 'main:sub' options, in display order"""
    options = []
    for main_category, config in CATEGORY_STRUCTURE.items():
        options.append(main_category)
        options.extend(f"{main_category}:{sub}" for sub in config['subcategories'])
    return options
