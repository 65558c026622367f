"""Candidate entities: the semantic model's loosely typed output.

Each known Schema.org type is a pydantic model with a closed set of known
fields.  Anything else the model sends lands in ``model_extra`` and is kept
but never required.  Fields are snake_case in Python and camelCase on the
wire (``priceCurrency``, ``startDate``, ...).

Leniency rules applied before validation:

* list fields accept a single value and wrap it; ``None`` items are dropped
* numbers arriving in text fields become strings
* price-like fields accept ``float | int | str``; the validator repairs them
* a bare string where a small object is expected (``"brand": "Acme"``)
  becomes that object's ``name`` (or ``text`` for steps and answers)
"""

from __future__ import annotations

from typing import Annotated, Any, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Left for the validator to repair.
Numeric = Optional[Union[float, int, str]]


def _as_list(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [item for item in value if item is not None]
    return [value]


def _url_of(value: Any) -> Any:
    # ImageObject-like {"url": ...} becomes its URL.
    if isinstance(value, Mapping):
        return value.get("url") or value.get("contentUrl")
    return value


def _urls_of(value: Any) -> Any:
    items = _as_list(value)
    if items is None:
        return None
    urls = (_url_of(item) for item in items)
    return [url for url in urls if url is not None]


def _wrap_as(key: str):
    def wrap(value: Any) -> Any:
        if isinstance(value, str):
            return {key: value}
        return value

    return wrap


def _wrap_items_as(key: str):
    wrap = _wrap_as(key)

    def wrap_items(value: Any) -> Any:
        items = _as_list(value)
        return [wrap(item) for item in items] if items is not None else None

    return wrap_items


StrList = Annotated[Optional[list[str]], BeforeValidator(_as_list)]
UrlValue = Annotated[Optional[str], BeforeValidator(_url_of)]
UrlList = Annotated[Optional[list[str]], BeforeValidator(_urls_of)]


class SchemaModel(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
    )

    @property
    def extras(self) -> dict[str, Any]:
        """Fields the model sent that this type does not know about."""
        return dict(self.model_extra or {})


# ---------------------------------------------------------------------------
# Nested value objects
# ---------------------------------------------------------------------------

class Brand(SchemaModel):
    name: Optional[str] = None


class PartyRef(SchemaModel):
    """A Person or Organization referenced by another entity."""

    kind: Optional[str] = Field(None, validation_alias=AliasChoices("@type", "type"))
    name: Optional[str] = None
    url: Optional[str] = None
    logo_url: UrlValue = Field(None, validation_alias=AliasChoices("logoUrl", "logo"))


class Offer(SchemaModel):
    price: Numeric = None
    price_currency: Optional[str] = None
    availability: Optional[str] = None
    url: Optional[str] = None
    price_valid_until: Optional[str] = None


class AggregateRating(SchemaModel):
    rating_value: Numeric = None
    review_count: Numeric = None
    rating_count: Numeric = None
    best_rating: Numeric = None
    worst_rating: Numeric = None


class PostalAddress(SchemaModel):
    street_address: Optional[str] = None
    address_locality: Optional[str] = None
    address_region: Optional[str] = None
    postal_code: Optional[str] = None
    address_country: Optional[str] = None


Address = Optional[Union[PostalAddress, str]]


class GeoCoordinates(SchemaModel):
    latitude: Numeric = None
    longitude: Numeric = None


class Place(SchemaModel):
    name: Optional[str] = None
    address: Address = None


class NutritionInformation(SchemaModel):
    calories: Optional[str] = None
    protein_content: Optional[str] = None
    fat_content: Optional[str] = None
    carbohydrate_content: Optional[str] = None


class HowToStep(SchemaModel):
    name: Optional[str] = None
    text: Optional[str] = None
    url: Optional[str] = None
    image: UrlValue = None


class HowToItem(SchemaModel):
    name: Optional[str] = None


class Answer(SchemaModel):
    text: Optional[str] = None


class Question(SchemaModel):
    name: Optional[str] = None
    accepted_answer: Annotated[Optional[Answer], BeforeValidator(_wrap_as("text"))] = None


class ListItemRef(SchemaModel):
    position: Numeric = None
    name: Optional[str] = None
    url: Optional[str] = None


class SearchActionRef(SchemaModel):
    target: Optional[str] = None
    query_input: Optional[str] = Field(
        None, validation_alias=AliasChoices("queryInput", "query-input")
    )


Party = Annotated[Optional[PartyRef], BeforeValidator(_wrap_as("name"))]
PartyList = Annotated[Optional[list[PartyRef]], BeforeValidator(_wrap_items_as("name"))]
OfferList = Annotated[Optional[list[Offer]], BeforeValidator(_as_list)]
StepList = Annotated[Optional[list[HowToStep]], BeforeValidator(_wrap_items_as("text"))]
HowToItemList = Annotated[Optional[list[HowToItem]], BeforeValidator(_wrap_items_as("name"))]


# ---------------------------------------------------------------------------
# Entity variants
# ---------------------------------------------------------------------------

class CandidateEntity(SchemaModel):
    """Fields shared by every entity type."""

    type_: str = Field(alias="@type")
    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    image: UrlList = None


class GenericCandidate(CandidateEntity):
    """Any type without a dedicated model."""


class ProductCandidate(CandidateEntity):
    sku: Optional[str] = None
    gtin: Optional[str] = None
    mpn: Optional[str] = None
    brand: Annotated[Optional[Brand], BeforeValidator(_wrap_as("name"))] = None
    offers: OfferList = None
    aggregate_rating: Optional[AggregateRating] = None


class RecipeCandidate(CandidateEntity):
    author: PartyList = None
    date_published: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    total_time: Optional[str] = None
    recipe_yield: Optional[str] = None
    recipe_category: Optional[str] = None
    recipe_cuisine: Optional[str] = None
    nutrition: Optional[NutritionInformation] = None
    recipe_ingredient: StrList = None
    recipe_instructions: StepList = None
    aggregate_rating: Optional[AggregateRating] = None


class EventCandidate(CandidateEntity):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    event_status: Optional[str] = None
    event_attendance_mode: Optional[str] = None
    location: Annotated[Optional[Place], BeforeValidator(_wrap_as("name"))] = None
    organizer: Party = None
    offers: OfferList = None


class LocalBusinessCandidate(CandidateEntity):
    telephone: Optional[str] = None
    email: Optional[str] = None
    address: Address = None
    geo: Optional[GeoCoordinates] = None
    opening_hours: StrList = None
    price_range: Optional[str] = None
    same_as: UrlList = None
    aggregate_rating: Optional[AggregateRating] = None


class OrganizationCandidate(CandidateEntity):
    logo: UrlValue = None
    same_as: UrlList = None
    telephone: Optional[str] = None
    email: Optional[str] = None
    address: Address = None


class ArticleCandidate(CandidateEntity):
    headline: Optional[str] = None
    author: PartyList = None
    publisher: Party = None
    date_published: Optional[str] = None
    date_modified: Optional[str] = None
    article_section: Optional[str] = None


class FAQPageCandidate(CandidateEntity):
    main_entity: Annotated[Optional[list[Question]], BeforeValidator(_as_list)] = None


class HowToCandidate(CandidateEntity):
    step: StepList = None
    total_time: Optional[str] = None
    tool: HowToItemList = None
    supply: HowToItemList = None


class WebPageCandidate(CandidateEntity):
    date_published: Optional[str] = None
    date_modified: Optional[str] = None
    breadcrumb: StrList = None


class WebSiteCandidate(CandidateEntity):
    potential_action: Optional[SearchActionRef] = None


class ItemListCandidate(CandidateEntity):
    number_of_items: Numeric = None
    item_list_element: Annotated[
        Optional[list[ListItemRef]], BeforeValidator(_wrap_items_as("name"))
    ] = None


class VideoObjectCandidate(CandidateEntity):
    thumbnail_url: UrlValue = None
    upload_date: Optional[str] = None
    duration: Optional[str] = None
    content_url: Optional[str] = None
    embed_url: Optional[str] = None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

CANDIDATE_TYPES: dict[str, type[CandidateEntity]] = {
    "Product": ProductCandidate,
    "Recipe": RecipeCandidate,
    "Event": EventCandidate,
    "LocalBusiness": LocalBusinessCandidate,
    "Organization": OrganizationCandidate,
    "Article": ArticleCandidate,
    "BlogPosting": ArticleCandidate,
    "NewsArticle": ArticleCandidate,
    "FAQPage": FAQPageCandidate,
    "HowTo": HowToCandidate,
    "WebPage": WebPageCandidate,
    "WebSite": WebSiteCandidate,
    "ItemList": ItemListCandidate,
    "VideoObject": VideoObjectCandidate,
}

# Google Rich Results minimums, keyed by wire (camelCase) field name.
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "Product": ("name",),
    "Recipe": ("name",),
    "Event": ("name", "startDate"),
    "LocalBusiness": ("name",),
    "Organization": ("name",),
    "Article": ("headline",),
    "BlogPosting": ("headline",),
    "NewsArticle": ("headline",),
    "FAQPage": ("mainEntity",),
    "HowTo": ("name",),
    "WebPage": ("name",),
    "WebSite": ("name",),
    "ItemList": ("itemListElement",),
    "VideoObject": ("name",),
}


def required_fields(entity_type: str) -> tuple[str, ...]:
    """Required wire fields for *entity_type*; unknown types require nothing."""
    return REQUIRED_FIELDS.get(entity_type, ())


def parse_candidate(raw: Mapping[str, Any]) -> CandidateEntity:
    """Parse *raw* into the model registered for its ``@type``.

    Raises:
        pydantic.ValidationError: If a known field has a shape that cannot
            be coerced.
    """
    model = CANDIDATE_TYPES.get(str(raw.get("@type")), GenericCandidate)
    return model.model_validate(dict(raw))
