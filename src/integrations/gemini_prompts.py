"""Prompt templates for the Gemini calls made by GeminiClient."""

import json
from collections import Counter
from typing import Iterable, List

from config.constants import CATEGORIES, OUTFIT_LIMITS
from wardrobe.models import OutfitContext, WardrobeItem, WardrobeItemMetadata

_CATEGORY_LIST = ", ".join(sorted(CATEGORIES))


ANALYZE_ITEM_PROMPT = f"""Look at the clothing item in this photo and describe it as a JSON object:
{{
  "category": "one of: {_CATEGORY_LIST}",
  "subcategory": "the specific garment type, e.g. T-Shirt, Jeans, Sneakers, Watch, Jacket",
  "color": "the main color as a simple name, e.g. Blue, Black, White",
  "material": "the fabric or material, e.g. Cotton, Denim, Leather, Polyester",
  "attributes": ["style tags such as casual, formal, summer, winter, vintage, sporty"]
}}

Rules:
- Respond with the JSON object only, without markdown or commentary
- category must be exactly one of: {_CATEGORY_LIST}
- subcategory must be specific ("T-Shirt" rather than "Shirt")
- attributes must contain at least two tags"""


DETECT_ITEMS_PROMPT = f"""Find EVERY clothing item visible in this photo, whether worn by a person or laid out.

Respond with a JSON object holding an "items" array, one entry per distinct garment:
{{
  "items": [
    {{
      "category": "one of: {_CATEGORY_LIST}",
      "subcategory": "specific type, e.g. Polo Shirt, Jeans, Sneakers, Bomber Jacket",
      "color": "main color name",
      "material": "fabric or material",
      "attributes": ["casual", "formal", "summer", "winter", "vintage", "sporty"],
      "gender": "male, female or unisex",
      "sleeveLength": "short, long, sleeveless, 3-4 or cap (tops and outerwear)",
      "fit": "slim, regular, relaxed, oversized or cropped",
      "neckline": "crew, v-neck, polo, mock, turtleneck, scoop, henley or collar (tops)",
      "pattern": "solid, striped, plaid, printed, graphic or checkered",
      "length": "cropped, regular, long, mini, midi, maxi or ankle (bottoms and dresses)"
    }}
  ]
}}

Rules:
- Respond with the JSON object only, without markdown or commentary
- A jacket, a shirt and trousers are three separate items; list each garment once
- category must be exactly one of: {_CATEGORY_LIST}
- Fill in every field. The details are used to generate accurate product images
- sleeveLength is required for tops and outerwear, neckline for tops
- gender is "male" for menswear, "female" for womenswear and "unisex" otherwise"""


PERSONAL_MODEL_PROMPT = """Turn the person in this photo into a fashion model reference image for virtual try-on.

- Keep their face, hair color, hairstyle and body shape exactly as they are
- Neutral studio with soft, even lighting on a plain white or light gray background
- Dress them in a simple fitted white base layer: white t-shirt and light trousers
- Standing straight in a relaxed pose, facing the camera
- Full body in frame from head to feet, no harsh shadows

The result must still be recognisably the same person."""


def _clean_image_specs(metadata: WardrobeItemMetadata) -> List[str]:
    lines = [
        f"- Color: {metadata.color}",
        f"- Type: {metadata.subcategory} ({metadata.category})",
        f"- Material: {metadata.material}",
    ]
    details = metadata.details()
    if details:
        lines.extend(f"- {label}: {value}" for label, value in details.items())
    else:
        lines.append("- Other details: as shown in the reference photo")
    return lines


def build_clean_image_prompt(metadata: WardrobeItemMetadata) -> str:
    """Prompt for a studio product shot of one garment on white."""
    locked = [
        f"- The {label.lower()} must stay {value.upper()}"
        for label, value in metadata.details().items()
        if label != "Length"
    ]
    sections = [
        f"Create a studio product photo of ONLY this garment: {metadata.describe()}.",
        "",
        "The garment must match these specifications exactly:",
        *_clean_image_specs(metadata),
    ]
    if locked:
        sections += ["", "Do not alter these details:", *locked]
    sections += [
        "",
        "Photography:",
        "- Pure white background (#FFFFFF)",
        "- Soft, even e-commerce lighting without harsh shadows",
        "- Garment centered, laid flat or naturally shaped",
        "- No person, model or mannequin",
        f"- Sharp enough to show the {metadata.material} texture and construction",
        "",
        f"Use the attached photo as the reference for this {metadata.subcategory}'s exact style and construction.",
        "Generate only the garment.",
    ]
    return "\n".join(sections)


def build_outfit_prompt(items: Iterable[WardrobeItem], context: OutfitContext) -> str:
    """Prompt asking the stylist model to pick an outfit from the wardrobe."""
    items = list(items)
    wardrobe_json = json.dumps(
        [
            {
                "id": item.id,
                "category": item.category,
                "subcategory": item.subcategory,
                "color": item.color,
                "material": item.material,
                "attributes": item.attributes,
            }
            for item in items
        ],
        indent=2,
    )
    counts = Counter(item.category for item in items)
    category_summary = ", ".join(f"{category}: {count} items" for category, count in counts.items())

    return f"""You are an experienced personal stylist putting together a look from a client's own wardrobe.

WARDROBE:
{wardrobe_json}

Pieces available: {category_summary}

BRIEF:
- Occasion: {context.occasion}
- Weather: {context.weather}

Respond with JSON only, no markdown:
{{
  "itemIds": ["id1", "id2"],
  "suggestion": "Two or three sentences on the look, its color story and why it works",
  "stylistNote": "One practical tip for wearing it"
}}

Guidelines:
- Use between {OUTFIT_LIMITS.MIN_ITEMS} and {OUTFIT_LIMITS.MAX_ITEMS} pieces
- Only use ids that appear in the wardrobe above
- Keep colors harmonious and proportions balanced
- Dress for the occasion and the weather; include shoes when the wardrobe has them"""


def build_tryon_prompt(items: Iterable[WardrobeItem]) -> str:
    """Prompt for dressing the personal model (image 1) in the garments (images 2+)."""
    garment_lines = "\n".join(
        f"{index}. Garment (Image {index}): {item.describe()}"
        for index, item in enumerate(items, start=2)
    )
    return f"""Create a fashion photograph of a virtual try-on.

REFERENCE IMAGES:
1. Person (Image 1): the model to dress. Keep their face, hair, skin tone and body shape.
{garment_lines}

OUTPUT:
- Portrait orientation, 3:4 aspect ratio
- The complete body from the top of the head to the feet, with margin around the person
- Head and feet fully visible, nothing cropped
- Straight-on, eye-level camera, standing in a natural confident pose

STYLING:
- Dress the person in ALL garments from images 2 onwards
- Clothes fit and drape realistically
- Soft, even studio lighting on a plain light gray or white backdrop
- Catalog quality with natural skin tones and fabric textures

Generate a single photo showing the full outfit on the model."""
