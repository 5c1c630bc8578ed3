"""Default style catalog inserted into an empty database"""

UNSPLASH = "https://images.unsplash.com/photo-{}?w=300"


def _locked(subject: str, instruction: str) -> str:
    """Background-only edit prompt that forbids touching the subject"""
    return (
        f"KEEP THE EXACT {subject.upper()} UNCHANGED - do not modify, alter, or change the {subject} in any way. "
        f"Only {instruction} The {subject} must remain exactly identical."
    )


DEFAULT_CATEGORIES = [
    {
        "id": "products",
        "name": "Products",
        "description": "E-commerce and product photography",
        "image_url": None,
        "styles": [
            ("studio", "Studio White", "Clean professional background", _locked(
                "product",
                "change the background to a professional studio setup with clean white background, "
                "even lighting, soft shadows, center-framed."), None),
            ("lifestyle", "Natural Environment", "Product in natural setting", _locked(
                "product",
                "place the identical product in a natural environment that complements it (outdoor nature, "
                "urban space, workplace, sports arena, indoor space, or contextual setting), natural lighting, "
                "realistic and authentic atmosphere, professionally shot."), None),
            ("moody", "Dark Moody", "Dramatic cinematic lighting", _locked(
                "product",
                "transform the background and lighting to a dramatic photo with darker background, subtle shadows, "
                "and cinematic atmosphere. Keep the full product clearly visible with good detail while maintaining "
                "a sophisticated aesthetic."), None),
            ("vibrant", "Vibrant Ad Style", "High-contrast commercial look", _locked(
                "product",
                "change the background and lighting to make the product pop with a colorful, high-contrast "
                "commercial look. Use bright lighting, dramatic shadows, glowing reflections. Like an ad banner."),
                None),
            ("flatlay", "Minimalist Flat Lay", "Top-down aesthetic composition", _locked(
                "product",
                "place the identical product in a top-down flat lay on a solid neutral color surface "
                "(light beige or gray), clean layout, minimalist, aesthetic composition."), None),
            ("premium", "Premium Showroom", "High-end elegant surroundings", _locked(
                "product",
                "render the identical product in a high-end showroom with premium materials, soft natural light, "
                "elegant surroundings. For large products too."), None),
        ],
    },
    {
        "id": "restaurants",
        "name": "Restaurants",
        "description": "Food and dining photography",
        "image_url": None,
        "styles": [
            ("rustic", "Rustic Table", "Warm wooden table setting", _locked(
                "food",
                "change the background to a rustic wooden table with warm lighting, natural textures, "
                "cozy restaurant atmosphere."), None),
            ("fine-dining", "Fine Dining", "Elegant restaurant presentation", _locked(
                "food",
                "change the background to an elegant fine dining setting with pristine white tablecloth, "
                "sophisticated plating, soft ambient lighting."), None),
            ("street-food", "Street Food Vibes", "Authentic street market feel", _locked(
                "food",
                "change the background to a vibrant street food market setting with authentic atmosphere, "
                "casual presentation, dynamic lighting."), None),
            ("coffee-shop", "Coffee Shop Aesthetic", "Cozy cafe environment", _locked(
                "food",
                "change the background to a cozy coffee shop setting with warm lighting, wooden surfaces, "
                "casual atmosphere."), None),
            ("outdoor-dining", "Outdoor Dining", "Fresh air restaurant setting", _locked(
                "food",
                "change the background to an outdoor dining setting with natural daylight, fresh atmosphere, "
                "patio or garden setting."), None),
            ("minimalist-food", "Minimalist Clean", "Clean modern presentation", _locked(
                "food",
                "change the background to a minimalist clean setting with neutral colors, modern presentation, "
                "professional food photography style."), None),
        ],
    },
    {
        "id": "gyms",
        "name": "Gyms",
        "description": "Fitness and workout spaces",
        "image_url": "https://images.unsplash.com/photo-1534438327276-14e5300c3a48?w=500",
        "styles": [
            ("modern-gym", "Modern Fitness Center", "State-of-the-art equipment", _locked(
                "subject",
                "change the background to a modern fitness center with high-tech equipment, clean lines, "
                "bright lighting, professional gym atmosphere."), UNSPLASH.format("1534438327276-14e5300c3a48")),
            ("outdoor-workout", "Outdoor Training", "Fresh air fitness environment", _locked(
                "subject",
                "change the background to an outdoor training environment with natural lighting, "
                "park or beach setting, fresh air atmosphere."), UNSPLASH.format("1571019613454-1cb2f99b2d8b")),
            ("crossfit-box", "CrossFit Box", "Industrial training space", _locked(
                "subject",
                "change the background to a CrossFit box with industrial feel, functional equipment, "
                "raw atmosphere."), UNSPLASH.format("1571019613454-1cb2f99b2d8b")),
            ("yoga-studio", "Yoga Studio", "Peaceful meditation space", _locked(
                "subject",
                "change the background to a peaceful yoga studio with soft lighting, natural elements, "
                "zen atmosphere."), UNSPLASH.format("1506629905877-68e5842ee1a1")),
            ("home-gym", "Home Gym Setup", "Personal workout space", _locked(
                "subject",
                "change the background to a home gym setup with personal touch, organized equipment, "
                "motivational atmosphere."), UNSPLASH.format("1558611012-1e5c5b6e9aad")),
            ("boxing-gym", "Boxing Gym", "Intense training environment", _locked(
                "subject",
                "change the background to a boxing gym with heavy bags, intense lighting, gritty atmosphere."),
                UNSPLASH.format("1534438327276-14e5300c3a48")),
        ],
    },
    {
        "id": "decoration",
        "name": "Decoration",
        "description": "Interior design and home decor",
        "image_url": "https://images.unsplash.com/photo-1586023492125-27b2c045efd7?w=500",
        "styles": [
            ("modern-living", "Modern Living Room", "Contemporary home setting", _locked(
                "item",
                "change the background to a modern living room with contemporary furniture, clean lines, "
                "natural light."), UNSPLASH.format("1586023492125-27b2c045efd7")),
            ("rustic-bedroom", "Rustic Bedroom", "Cozy bedroom atmosphere", _locked(
                "item",
                "change the background to a rustic bedroom with warm textures, cozy atmosphere, soft lighting."),
                UNSPLASH.format("1560448204-e02f11c3d0e2")),
            ("minimalist-kitchen", "Minimalist Kitchen", "Clean kitchen design", _locked(
                "item",
                "change the background to a minimalist kitchen with clean surfaces, modern appliances, "
                "bright lighting."), UNSPLASH.format("1556909114-4e3afa3d9ee3")),
            ("garden-patio", "Garden Patio", "Outdoor living space", _locked(
                "item",
                "change the background to a garden patio with outdoor furniture, plants, natural lighting."),
                UNSPLASH.format("1600607687939-ce8a6c25118c")),
            ("office-space", "Modern Office", "Professional workspace", _locked(
                "item",
                "change the background to a modern office space with professional atmosphere, "
                "organized workspace, good lighting."), UNSPLASH.format("1497366216548-37526070297c")),
            ("luxury-bathroom", "Luxury Bathroom", "Spa-like bathroom setting", _locked(
                "item",
                "change the background to a luxury bathroom with spa-like atmosphere, premium materials, "
                "elegant lighting."), UNSPLASH.format("1584622781564-1d987ac7c017")),
        ],
    },
    {
        "id": "automotive",
        "name": "Automotive",
        "description": "Cars and vehicle photography",
        "image_url": "https://images.unsplash.com/photo-1492144534655-ae79c964c9d7?w=500",
        "styles": [
            ("showroom", "Luxury Showroom", "Premium dealership setting", _locked(
                "vehicle",
                "change the background to a luxury car showroom with polished floors, professional lighting, "
                "premium atmosphere."), UNSPLASH.format("1492144534655-ae79c964c9d7")),
            ("urban-street", "Urban Street", "City street environment", _locked(
                "vehicle",
                "change the background to an urban street setting with city backdrop, dynamic lighting, "
                "modern atmosphere."), UNSPLASH.format("1449824913935-59a10b8d2000")),
            ("scenic-road", "Scenic Highway", "Beautiful landscape backdrop", _locked(
                "vehicle",
                "change the background to a scenic highway with beautiful landscape, natural lighting, "
                "open road feel."), UNSPLASH.format("1544829099-b9a0c5303bff")),
            ("garage-studio", "Professional Garage", "Clean garage environment", _locked(
                "vehicle",
                "change the background to a professional garage with clean environment, organized tools, "
                "workshop atmosphere."), UNSPLASH.format("1486262715619-67b85e0b08d3")),
            ("track-day", "Race Track", "Racing circuit setting", _locked(
                "vehicle",
                "change the background to a race track with circuit atmosphere, dynamic setting, motorsport feel."),
                UNSPLASH.format("1492144534655-ae79c964c9d7")),
            ("vintage-garage", "Vintage Workshop", "Classic car garage", _locked(
                "vehicle",
                "change the background to a vintage workshop with classic atmosphere, retro tools, "
                "nostalgic feel."), UNSPLASH.format("1503376780353-7e6692767b70")),
        ],
    },
    {
        "id": "events",
        "name": "Events",
        "description": "Social gatherings and celebrations",
        "image_url": "https://images.unsplash.com/photo-1511795409834-ef04bbd61622?w=500",
        "styles": [
            ("wedding-venue", "Wedding Venue", "Elegant wedding setting", _locked(
                "subject",
                "change the background to an elegant wedding venue with romantic atmosphere, "
                "beautiful decorations, soft lighting."), UNSPLASH.format("1511795409834-ef04bbd61622")),
            ("corporate-event", "Corporate Event", "Professional conference setting", _locked(
                "subject",
                "change the background to a corporate event with professional atmosphere, modern venue, "
                "business setting."), UNSPLASH.format("1540575467063-178a50c2df87")),
            ("birthday-party", "Birthday Celebration", "Festive party atmosphere", _locked(
                "subject",
                "change the background to a birthday party with festive decorations, celebration atmosphere, "
                "colorful setting."), UNSPLASH.format("1530103862676-de8c9debad1d")),
            ("outdoor-festival", "Outdoor Festival", "Open-air event setting", _locked(
                "subject",
                "change the background to an outdoor festival with open-air atmosphere, stage setting, "
                "crowd energy."), UNSPLASH.format("1459749411175-04bf5292ceea")),
            ("gala-dinner", "Gala Dinner", "Formal dinner event", _locked(
                "subject",
                "change the background to a gala dinner with formal atmosphere, elegant table setting, "
                "sophisticated lighting."), UNSPLASH.format("1478146896981-b80fe463b330")),
            ("concert-venue", "Concert Hall", "Music performance setting", _locked(
                "subject",
                "change the background to a concert hall with stage lighting, performance atmosphere, "
                "music venue feel."), UNSPLASH.format("1470229722913-7c0e2dbbafd3")),
        ],
    },
]
