"""Final authority over the semantic model's output.  Deterministic only.

For each candidate, in input order:

1. check the required fields for its ``@type`` and reject fast if any is
   null, absent, empty or an empty list
2. parse it into the type's candidate model (a shape that cannot be coerced
   is a rejection, not an error)
3. build the JSON-LD properties through the type's field map, repairing
   prices, URLs and dates and logging every change in ``repairs``

The batch succeeds when at least one candidate is accepted.  Never calls a
model, never infers, never emits a null-valued key.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from pydantic import ValidationError

from schemalift.errors import ValidationFailure
from schemalift.pipeline import entities as ent
from schemalift.pipeline.models import RejectedEntity, ValidatedEntity, ValidationReport
from schemalift.pipeline.repairs import repair_date, repair_price, repair_url

_log = logging.getLogger(__name__)

_DEFAULT_QUERY_INPUT = "required name=search_term_string"


# ---------------------------------------------------------------------------
# Repair bookkeeping
# ---------------------------------------------------------------------------

class _Repairer:
    """Applies repair functions for one entity and records what changed."""

    def __init__(self, entity_type: str, page_url: str | None, repairs: list[str]) -> None:
        self.entity_type = entity_type
        self.page_url = page_url
        self.repairs = repairs

    def _note(self, message: str) -> None:
        self.repairs.append(f"{self.entity_type}: {message}")

    def price(self, value: Any, label: str) -> float | None:
        if not _present(value):
            return None
        repaired = repair_price(value)
        if repaired is None:
            self._note(f"dropped {label} {value!r} (no number found)")
        elif isinstance(value, str):
            self._note(f"cleaned {label}: {value!r} -> {_format_number(repaired)}")
        return repaired

    def count(self, value: Any, label: str) -> int | float | None:
        repaired = self.price(value, label)
        if repaired is not None and repaired.is_integer():
            return int(repaired)
        return repaired

    def url(self, value: Any, label: str) -> str | None:
        if not _present(value):
            return None
        repaired = repair_url(value, self.page_url)
        if repaired is None:
            self._note(f"dropped {label} {value!r} (unresolvable URL)")
        elif repaired != value:
            self._note(f"resolved {label}: {value!r} -> {repaired!r}")
        return repaired

    def urls(self, values: Iterable[Any] | None, label: str) -> list[str]:
        repaired = (self.url(v, label) for v in values or ())
        return [u for u in repaired if u]

    def date(self, value: Any, label: str) -> Any:
        if not _present(value):
            return None
        repaired = repair_date(value)
        if repaired != value:
            self._note(f"normalised {label}: {value!r} -> {repaired!r}")
        return repaired

    def note(self, message: str) -> None:
        self._note(message)


def _format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------

def _present(value: Any) -> bool:
    """``None``, ``""`` and empty collections all count as missing."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def _put(record: dict[str, Any], key: str, value: Any) -> None:
    if _present(value):
        record[key] = value


def _node(schema_type: str, **fields: Any) -> dict[str, Any] | None:
    """Build a typed sub-object; ``None`` if no field survived."""
    obj: dict[str, Any] = {"@type": schema_type}
    for key, value in fields.items():
        _put(obj, key, value)
    return obj if len(obj) > 1 else None


def _one_or_many(items: list[Any]) -> Any:
    return items[0] if len(items) == 1 else items


def _check_required(entity_type: str, raw: Mapping[str, Any]) -> str | None:
    for field in ent.required_fields(entity_type):
        value = raw.get(field)
        if isinstance(value, (list, tuple)) and not value:
            return f"Empty required field: {entity_type}.{field}"
        if not _present(value):
            return f"Missing required field: {entity_type}.{field}"
    return None


# ---------------------------------------------------------------------------
# Sub-object builders
# ---------------------------------------------------------------------------

def _offer(offer: ent.Offer, fix: _Repairer) -> dict[str, Any] | None:
    return _node(
        "Offer",
        price=fix.price(offer.price, "offers.price"),
        priceCurrency=offer.price_currency,
        availability=offer.availability,
        url=fix.url(offer.url, "offers.url"),
        priceValidUntil=fix.date(offer.price_valid_until, "offers.priceValidUntil"),
    )


def _offers(offers: list[ent.Offer] | None, fix: _Repairer) -> list[dict[str, Any]]:
    built = (_offer(o, fix) for o in offers or ())
    return [o for o in built if o]


def _rating(rating: ent.AggregateRating | None, fix: _Repairer) -> dict[str, Any] | None:
    if rating is None:
        return None
    return _node(
        "AggregateRating",
        ratingValue=fix.price(rating.rating_value, "aggregateRating.ratingValue"),
        reviewCount=fix.count(rating.review_count, "aggregateRating.reviewCount"),
        ratingCount=fix.count(rating.rating_count, "aggregateRating.ratingCount"),
        bestRating=fix.price(rating.best_rating, "aggregateRating.bestRating"),
        worstRating=fix.price(rating.worst_rating, "aggregateRating.worstRating"),
    )


def _party(party: ent.PartyRef | None, fix: _Repairer, label: str, default: str) -> dict[str, Any] | None:
    if party is None:
        return None
    logo_url = fix.url(party.logo_url, f"{label}.logo")
    return _node(
        party.kind or default,
        name=party.name,
        url=fix.url(party.url, f"{label}.url"),
        logo=_node("ImageObject", url=logo_url),
    )


def _parties(parties: list[ent.PartyRef] | None, fix: _Repairer, label: str) -> Any:
    built = [p for p in (_party(p, fix, label, "Person") for p in parties or ()) if p]
    return _one_or_many(built) if built else None


def _address(address: ent.PostalAddress | str | None) -> Any:
    if address is None or isinstance(address, str):
        return address
    return _node(
        "PostalAddress",
        streetAddress=address.street_address,
        addressLocality=address.address_locality,
        addressRegion=address.address_region,
        postalCode=address.postal_code,
        addressCountry=address.address_country,
    )


def _steps(steps: list[ent.HowToStep] | None, fix: _Repairer, label: str) -> list[dict[str, Any]]:
    built = (
        _node(
            "HowToStep",
            name=step.name,
            text=step.text,
            url=fix.url(step.url, f"{label}.url"),
            image=fix.url(step.image, f"{label}.image"),
        )
        for step in steps or ()
    )
    return [s for s in built if s]


def _named_items(items: list[ent.HowToItem] | None, schema_type: str) -> list[dict[str, Any]]:
    built = (_node(schema_type, name=item.name) for item in items or ())
    return [i for i in built if i]


# ---------------------------------------------------------------------------
# Per-type field maps
# ---------------------------------------------------------------------------

def _common(c: ent.CandidateEntity, fix: _Repairer) -> dict[str, Any]:
    record: dict[str, Any] = {}
    _put(record, "name", c.name)
    _put(record, "description", c.description)
    _put(record, "url", fix.url(c.url, "url"))
    _put(record, "image", fix.urls(c.image, "image"))
    return record


def _build_product(c: ent.ProductCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "sku", c.sku)
    _put(record, "gtin", c.gtin)
    _put(record, "mpn", c.mpn)
    if c.brand is not None:
        _put(record, "brand", _node("Brand", name=c.brand.name))
    _put(record, "aggregateRating", _rating(c.aggregate_rating, fix))
    # Product offers are always a list.
    _put(record, "offers", _offers(c.offers, fix))
    return record


def _build_recipe(c: ent.RecipeCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "author", _parties(c.author, fix, "author"))
    _put(record, "datePublished", fix.date(c.date_published, "datePublished"))
    _put(record, "prepTime", c.prep_time)
    _put(record, "cookTime", c.cook_time)
    _put(record, "totalTime", c.total_time)
    _put(record, "recipeYield", c.recipe_yield)
    _put(record, "recipeCategory", c.recipe_category)
    _put(record, "recipeCuisine", c.recipe_cuisine)
    if c.nutrition is not None:
        _put(
            record,
            "nutrition",
            _node(
                "NutritionInformation",
                calories=c.nutrition.calories,
                proteinContent=c.nutrition.protein_content,
                fatContent=c.nutrition.fat_content,
                carbohydrateContent=c.nutrition.carbohydrate_content,
            ),
        )
    _put(record, "recipeIngredient", [i for i in c.recipe_ingredient or () if _present(i)])
    _put(record, "recipeInstructions", _steps(c.recipe_instructions, fix, "recipeInstructions"))
    _put(record, "aggregateRating", _rating(c.aggregate_rating, fix))
    return record


def _build_event(c: ent.EventCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "startDate", fix.date(c.start_date, "startDate"))
    _put(record, "endDate", fix.date(c.end_date, "endDate"))
    _put(record, "eventStatus", c.event_status)
    _put(record, "eventAttendanceMode", c.event_attendance_mode)
    if c.location is not None:
        _put(record, "location", _node("Place", name=c.location.name, address=_address(c.location.address)))
    _put(record, "organizer", _party(c.organizer, fix, "organizer", "Organization"))
    # Event offers are a single object.
    offers = _offers(c.offers, fix)
    if len(offers) > 1:
        fix.note(f"kept the first of {len(offers)} offers")
    if offers:
        record["offers"] = offers[0]
    return record


def _build_local_business(c: ent.LocalBusinessCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "telephone", c.telephone)
    _put(record, "email", c.email)
    _put(record, "address", _address(c.address))
    if c.geo is not None:
        _put(
            record,
            "geo",
            _node(
                "GeoCoordinates",
                latitude=fix.price(c.geo.latitude, "geo.latitude"),
                longitude=fix.price(c.geo.longitude, "geo.longitude"),
            ),
        )
    _put(record, "openingHours", [h for h in c.opening_hours or () if _present(h)])
    _put(record, "priceRange", c.price_range)
    _put(record, "sameAs", fix.urls(c.same_as, "sameAs"))
    _put(record, "aggregateRating", _rating(c.aggregate_rating, fix))
    return record


def _build_organization(c: ent.OrganizationCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "logo", fix.url(c.logo, "logo"))
    _put(record, "sameAs", fix.urls(c.same_as, "sameAs"))
    _put(record, "telephone", c.telephone)
    _put(record, "email", c.email)
    _put(record, "address", _address(c.address))
    return record


def _build_article(c: ent.ArticleCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "headline", c.headline)
    _put(record, "author", _parties(c.author, fix, "author"))
    _put(record, "publisher", _party(c.publisher, fix, "publisher", "Organization"))
    _put(record, "datePublished", fix.date(c.date_published, "datePublished"))
    _put(record, "dateModified", fix.date(c.date_modified, "dateModified"))
    _put(record, "articleSection", c.article_section)
    return record


def _build_faq(c: ent.FAQPageCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    questions = []
    for q in c.main_entity or ():
        answer = _node("Answer", text=q.accepted_answer.text) if q.accepted_answer else None
        question = _node("Question", name=q.name, acceptedAnswer=answer)
        if question:
            questions.append(question)
    _put(record, "mainEntity", questions)
    return record


def _build_howto(c: ent.HowToCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "step", _steps(c.step, fix, "step"))
    _put(record, "totalTime", c.total_time)
    _put(record, "tool", _named_items(c.tool, "HowToTool"))
    _put(record, "supply", _named_items(c.supply, "HowToSupply"))
    return record


def _build_webpage(c: ent.WebPageCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "datePublished", fix.date(c.date_published, "datePublished"))
    _put(record, "dateModified", fix.date(c.date_modified, "dateModified"))
    crumbs = [crumb for crumb in c.breadcrumb or () if _present(crumb)]
    if crumbs:
        record["breadcrumb"] = {
            "@type": "BreadcrumbList",
            "itemListElement": [
                {"@type": "ListItem", "position": i, "name": crumb}
                for i, crumb in enumerate(crumbs, start=1)
            ],
        }
    return record


def _build_website(c: ent.WebSiteCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    action = c.potential_action
    if action is not None and _present(action.target):
        target = fix.url(action.target, "potentialAction.target")
        if target:
            record["potentialAction"] = {
                "@type": "SearchAction",
                "target": target,
                "query-input": action.query_input or _DEFAULT_QUERY_INPUT,
            }
    return record


def _build_item_list(c: ent.ItemListCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "numberOfItems", fix.count(c.number_of_items, "numberOfItems"))
    elements = []
    for index, item in enumerate(c.item_list_element or (), start=1):
        position = fix.count(item.position, "itemListElement.position")
        element = _node(
            "ListItem",
            name=item.name,
            url=fix.url(item.url, "itemListElement.url"),
        )
        if element:
            element["position"] = position if position is not None else index
            elements.append(element)
    _put(record, "itemListElement", elements)
    return record


def _build_video(c: ent.VideoObjectCandidate, fix: _Repairer) -> dict[str, Any]:
    record = _common(c, fix)
    _put(record, "thumbnailUrl", fix.url(c.thumbnail_url, "thumbnailUrl"))
    _put(record, "uploadDate", fix.date(c.upload_date, "uploadDate"))
    _put(record, "duration", c.duration)
    _put(record, "contentUrl", fix.url(c.content_url, "contentUrl"))
    _put(record, "embedUrl", fix.url(c.embed_url, "embedUrl"))
    return record


_BUILDERS: dict[str, Callable[[Any, _Repairer], dict[str, Any]]] = {
    "Product": _build_product,
    "Recipe": _build_recipe,
    "Event": _build_event,
    "LocalBusiness": _build_local_business,
    "Organization": _build_organization,
    "Article": _build_article,
    "BlogPosting": _build_article,
    "NewsArticle": _build_article,
    "FAQPage": _build_faq,
    "HowTo": _build_howto,
    "WebPage": _build_webpage,
    "WebSite": _build_website,
    "ItemList": _build_item_list,
    "VideoObject": _build_video,
}


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ())) or "root"
    return f"{loc}: {first.get('msg', 'invalid value')}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate(
    candidates: Iterable[Any],
    page_url: str | None = None,
    logger: logging.Logger | None = None,
) -> ValidationReport:
    """Validate *candidates* and build JSON-LD for every one that passes.

    Args:
        candidates: Raw candidate entities (mappings tagged with ``@type``)
            as produced by the semantic-mapping step.
        page_url: Final URL of the page; base for relative URL repair.
        logger: Destination for diagnostics.  Defaults to the module logger.

    Returns:
        A :class:`ValidationReport` with at least one accepted entity.

    Raises:
        ValidationFailure: If no candidate was accepted.  The exception's
            ``report`` still lists every rejection.
    """
    log = logger or _log
    candidates = list(candidates)
    log.info("Starting multi-entity validation (%d candidate(s))", len(candidates))

    accepted: list[ValidatedEntity] = []
    rejected: list[RejectedEntity] = []
    repairs: list[str] = []

    for raw in candidates:
        if not isinstance(raw, Mapping):
            rejected.append(RejectedEntity(type="Unknown", reason="Candidate is not an object"))
            log.warning("Entity rejected: candidate is not an object (%s)", type(raw).__name__)
            continue

        entity_type = raw.get("@type")
        if not isinstance(entity_type, str) or not entity_type.strip():
            rejected.append(RejectedEntity(type="Unknown", reason="Missing entity type (@type)"))
            log.warning("Entity rejected: missing @type")
            continue
        entity_type = entity_type.strip()

        reason = _check_required(entity_type, raw)
        if reason:
            rejected.append(RejectedEntity(type=entity_type, reason=reason))
            log.warning("Entity rejected: %s (%s)", entity_type, reason)
            continue

        try:
            candidate = ent.parse_candidate({**raw, "@type": entity_type})
        except ValidationError as exc:
            reason = f"Malformed {entity_type}: {_describe(exc)}"
            rejected.append(RejectedEntity(type=entity_type, reason=reason))
            log.warning("Entity rejected: %s", reason)
            continue

        if candidate.extras:
            log.debug("Ignoring unknown %s fields: %s", entity_type, sorted(candidate.extras))

        entity_repairs: list[str] = []
        fix = _Repairer(entity_type, page_url, entity_repairs)
        properties = _BUILDERS.get(entity_type, _common)(candidate, fix)

        # Building drops empty items, so a non-empty raw list can still end up empty.
        lost = [f for f in ent.required_fields(entity_type) if not _present(properties.get(f))]
        if lost:
            reason = f"Empty required field: {entity_type}.{lost[0]}"
            rejected.append(RejectedEntity(type=entity_type, reason=reason))
            log.warning("Entity rejected: %s (%s)", entity_type, reason)
            continue

        repairs.extend(entity_repairs)
        accepted.append(ValidatedEntity(type=entity_type, properties=properties))

    report = ValidationReport(
        accepted=tuple(accepted),
        rejected=tuple(rejected),
        repairs=tuple(repairs),
    )

    if not report.success:
        log.error("Validation failed: no valid entities (%d rejected)", len(rejected))
        raise ValidationFailure("No valid entities after validation", report=report)

    log.info(
        "Validation complete: %d accepted %s, %d rejected, %d repair(s)",
        len(accepted),
        report.entity_types,
        len(rejected),
        len(repairs),
    )
    return report
