"""Prompts do oráculo de classificação e extração.

Responsabilidades:
- Classificação da intenção primária (rótulo de um conjunto fechado)
- Extração de parâmetros por handler (JSON estruturado)
- Extração de campo do checkout guiado

Os prompts ficam em inglês porque a loja atende em inglês.
"""

from __future__ import annotations

from collections.abc import Iterable

from vnova_voice.domain.enums import Intent

_JSON_ONLY = "Return ONLY the JSON, no markdown, no explanation."


def format_intent_classification(transcript: str) -> str:
    """Prompt que deve responder apenas um rótulo de Intent."""
    labels = ", ".join(intent.value for intent in Intent)
    return f"""You classify voice commands for an online sports store.

Reply with exactly ONE label from this list and nothing else:
{labels}

Guidance:
- navigation: go home, go back, show all products, open a page
- cart: open or view the shopping cart
- category_navigation: browse a product category (gym, yoga, running...)
- product_navigation: open a specific product by name
- product_action: choose size, set quantity, add the current or named product to the cart
- apply_filter / remove_filter / clear_filters: change the product list filters
- user_info: the user is telling their name, email, address, phone or card details
- order_completion: the user wants to pay, check out or place the order
- general_command: anything else

User said: "{transcript}"
"""


def format_navigation(transcript: str, categories: Iterable[str], products: Iterable[str]) -> str:
    return f"""Map the voice command to a store destination.

Available categories: {", ".join(categories)}
Available products (id: name):
{chr(10).join(products)}

Return a JSON object:
{{"route": "/" | "/products" | "/cart" | null, "category": "<category>" | null, "productId": "<id>" | null}}
Use null for anything not mentioned. {_JSON_ONLY}

User said: "{transcript}"
"""


def format_product_action(
    transcript: str, product_name: str, sizes: Iterable[str], catalog_names: Iterable[str]
) -> str:
    return f"""The shopper is looking at: {product_name}
Available sizes: {", ".join(sizes) or "none"}
Other products in the store: {", ".join(catalog_names)}

Return a JSON object:
{{"action": "size" | "quantity" | "addToCart" | "none", "size": string | null, "quantity": integer | null, "productName": string | null}}
- productName only when the shopper names a different product.
- size must be one of the available sizes when given.
{_JSON_ONLY}

User said: "{transcript}"
"""


def format_apply_filter(transcript: str, categories: Iterable[str]) -> str:
    return f"""Convert the voice command into product list filters.

Known filter keys: category ({", ".join(categories)}), minPrice, maxPrice, minRating, size, sort ("price_asc" | "price_desc" | "rating").

Return a JSON object: {{"filters": {{"<key>": <value>}}}}
{_JSON_ONLY}

User said: "{transcript}"
"""


def format_remove_filter(transcript: str, active_keys: Iterable[str]) -> str:
    return f"""The product list has these active filters: {", ".join(active_keys) or "none"}.
Which of them does the shopper want to remove?

Return a JSON object: {{"keys": ["<key>", ...]}}
{_JSON_ONLY}

User said: "{transcript}"
"""


def format_user_info_update(transcript: str) -> str:
    return f"""Decide whether the shopper is giving personal or payment details.

Return a JSON object:
{{"isUserInfoUpdate": boolean, "name": string | null, "email": string | null, "address": string | null,
"phone": string | null, "cardName": string | null, "cardNumber": string | null,
"expiryDate": string | null, "cvv": string | null}}
{_JSON_ONLY}

User said: "{transcript}"
"""


def format_order_completion(transcript: str) -> str:
    return f"""Does the shopper want to finish the purchase (pay, checkout, place the order)?
Reply with exactly "yes" or "no".

User said: "{transcript}"
"""


def format_checkout_field_extraction(transcript: str, field_type: str) -> str:
    """Prompt para extrair UM campo do checkout guiado."""
    return f"""Extract the {field_type} from the shopper's spoken answer during checkout.

Field rules:
- NAME / CARD_NAME: the person's full name, each word capitalized.
- EMAIL: convert spoken "at" and "dot" into "@" and ".", lowercase, no spaces.
- ADDRESS: the full shipping address as spoken.
- PHONE / CARD_NUMBER / CVV: digits only.
- EXPIRY_DATE: "MM/YY".

Return a JSON object: {{"extracted": string | null, "error": string | null}}
When the value is missing, set "extracted" to null and "error" to
"Could not extract {field_type}" followed by a short, friendly request to repeat.
{_JSON_ONLY}

Shopper said: "{transcript}"
"""
