"""Built-in starter chains seeded into ``chain_templates``."""

from __future__ import annotations


def _steps(*pairs: tuple[str, str]) -> list[dict]:
    return [
        {"title": title, "description": desc, "order": idx}
        for idx, (title, desc) in enumerate(pairs, 1)
    ]


DEFAULT_CHAIN_TEMPLATES: list[dict] = [
    {
        "id": "brushing-teeth",
        "title": "Brushing Teeth",
        "description": "Complete tooth brushing routine for daily hygiene",
        "category": "hygiene",
        "age_range": "3-12 years",
        "difficulty": "beginner",
        "estimated_time": 5,
        "steps": _steps(
            ("Get toothbrush", "Pick up toothbrush from holder"),
            ("Turn on water", "Turn faucet handle to start water flow"),
            ("Wet toothbrush", "Hold toothbrush under running water"),
            ("Apply toothpaste", "Squeeze small amount of toothpaste onto bristles"),
            ("Brush front teeth", "Brush front teeth in circular motions for 30 seconds"),
            ("Brush back teeth", "Brush back teeth on both sides for 30 seconds each"),
            ("Brush tongue", "Gently brush tongue surface"),
            ("Rinse mouth", "Take water in mouth, swish, and spit out"),
            ("Rinse toothbrush", "Clean toothbrush under running water"),
            ("Put toothbrush away", "Place toothbrush back in holder"),
        ),
    },
    {
        "id": "getting-dressed",
        "title": "Getting Dressed",
        "description": "Complete morning dressing routine",
        "category": "dressing",
        "age_range": "4-10 years",
        "difficulty": "intermediate",
        "estimated_time": 10,
        "steps": _steps(
            ("Choose clothes", "Select appropriate clothes for the day"),
            ("Put on underwear", "Put on clean underwear"),
            ("Put on shirt", "Put arms through sleeves and pull over head"),
            ("Put on pants", "Step into pants and pull up to waist"),
            ("Put on socks", "Put on both socks, making sure they fit properly"),
            ("Put on shoes", "Put on shoes on correct feet"),
            ("Tie shoes or fasten", "Tie laces or fasten velcro/buckles"),
        ),
    },
    {
        "id": "washing-hands",
        "title": "Washing Hands",
        "description": "Proper handwashing technique",
        "category": "hygiene",
        "age_range": "2-8 years",
        "difficulty": "beginner",
        "estimated_time": 2,
        "steps": _steps(
            ("Turn on water", "Turn faucet to warm water"),
            ("Wet hands", "Put hands under running water"),
            ("Apply soap", "Pump soap onto palm"),
            ("Rub hands together", "Rub palms together to create lather"),
            ("Scrub between fingers", "Clean between all fingers"),
            ("Scrub for 20 seconds", "Continue scrubbing for at least 20 seconds"),
            ("Rinse hands", "Rinse all soap off hands with water"),
            ("Dry hands", "Dry hands with clean towel"),
            ("Turn off water", "Turn off faucet"),
        ),
    },
    {
        "id": "setting-table",
        "title": "Setting the Table",
        "description": "Set table for family dinner",
        "category": "daily-living",
        "age_range": "5-12 years",
        "difficulty": "intermediate",
        "estimated_time": 8,
        "steps": _steps(
            ("Clear table", "Remove any items from table surface"),
            ("Place placemats", "Put placemat at each seat"),
            ("Set plates", "Place plate in center of each placemat"),
            ("Place forks", "Put fork to the left of each plate"),
            ("Place knives", "Put knife to the right of each plate"),
            ("Place spoons", "Put spoon to the right of each knife"),
            ("Set glasses", "Place glass above each knife"),
            ("Add napkins", "Place napkin under fork or on plate"),
        ),
    },
    {
        "id": "making-bed",
        "title": "Making the Bed",
        "description": "Complete bed-making routine",
        "category": "daily-living",
        "age_range": "6-14 years",
        "difficulty": "intermediate",
        "estimated_time": 5,
        "steps": _steps(
            ("Remove pillows", "Take pillows off the bed"),
            ("Pull up sheet", "Pull bottom sheet tight and smooth"),
            ("Straighten top sheet", "Pull top sheet up and smooth out wrinkles"),
            ("Pull up blanket", "Pull blanket up to head of bed"),
            ("Fold down top", "Fold top sheet and blanket down neatly"),
            ("Fluff pillows", "Fluff and shape pillows"),
            ("Place pillows", "Put pillows at head of bed"),
        ),
    },
]
