"""Built-in starter templates returned beside a truck's own templates. Placeholders use {name} syntax."""
from typing import Dict, List, Optional

DEFAULT_TEMPLATES: Dict[str, List[Dict[str, object]]] = {
    "daily-special": [
        {
            "name": "Today's Special",
            "text": (
                "TODAY'S SPECIAL\n\n{special_name}\n{price}\n\n{description}\n\n"
                "Find us at: {location}\n\n#foodtruck #dailyspecial #{cuisine}food"
            ),
            "hashtags": ["foodtruck", "dailyspecial", "foodie", "streetfood"],
        },
    ],
    "location-update": [
        {
            "name": "Location Update",
            "text": (
                "WE'RE HERE!\n\nCome find us at {location}!\n\nServing until {closing_time}\n\n"
                "{menu_highlights}\n\n#foodtruck #{city}eats"
            ),
            "hashtags": ["foodtruck", "foodtrucklife", "streetfood"],
        },
    ],
    "new-menu": [
        {
            "name": "New Menu Item",
            "text": (
                "NEW ON THE MENU!\n\nIntroducing {item_name}\n\n{description}\n\n"
                "Only ${price}\n\nCome try it today!\n\n#newmenu #foodtruck"
            ),
            "hashtags": ["newmenu", "foodtruck", "tryit"],
        },
    ],
}


def default_templates(category: Optional[str] = None) -> List[Dict[str, object]]:
    """Templates of one category (empty for unknown categories), or all of them."""
    if category:
        return [dict(t, category=category) for t in DEFAULT_TEMPLATES.get(category, [])]
    return [dict(t, category=cat) for cat, items in DEFAULT_TEMPLATES.items() for t in items]
