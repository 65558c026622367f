"""Tests for candidate-entity parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from schemalift.pipeline.entities import (
    CANDIDATE_TYPES,
    ArticleCandidate,
    GenericCandidate,
    ProductCandidate,
    parse_candidate,
    required_fields,
)


class TestParseCandidate:
    def test_dispatches_on_type(self) -> None:
        assert isinstance(parse_candidate({"@type": "Product", "name": "W"}), ProductCandidate)
        assert isinstance(parse_candidate({"@type": "BlogPosting", "headline": "H"}), ArticleCandidate)

    def test_unknown_type_is_generic(self) -> None:
        candidate = parse_candidate({"@type": "Book", "name": "Dune", "isbn": "123"})
        assert isinstance(candidate, GenericCandidate)
        assert candidate.type_ == "Book"
        assert candidate.extras == {"isbn": "123"}

    def test_camel_case_wire_names(self) -> None:
        candidate = parse_candidate(
            {"@type": "Product", "name": "W", "aggregateRating": {"ratingValue": "4.5"}}
        )
        assert candidate.aggregate_rating.rating_value == "4.5"

    def test_single_offer_wrapped_in_list(self) -> None:
        candidate = parse_candidate({"@type": "Product", "name": "W", "offers": {"price": 5}})
        assert len(candidate.offers) == 1
        assert candidate.offers[0].price == 5

    def test_numbers_in_text_fields_become_strings(self) -> None:
        candidate = parse_candidate({"@type": "Product", "name": 123, "sku": 987})
        assert candidate.name == "123"
        assert candidate.sku == "987"

    def test_bare_strings_become_objects(self) -> None:
        candidate = parse_candidate(
            {"@type": "Product", "name": "W", "brand": "Acme"}
        )
        assert candidate.brand.name == "Acme"

        article = parse_candidate({"@type": "Article", "headline": "H", "author": "Jane Doe"})
        assert [a.name for a in article.author] == ["Jane Doe"]

    def test_image_objects_reduced_to_urls(self) -> None:
        candidate = parse_candidate(
            {
                "@type": "Product",
                "name": "W",
                "image": [{"url": "https://a.example/1.png"}, "https://a.example/2.png", None],
            }
        )
        assert candidate.image == ["https://a.example/1.png", "https://a.example/2.png"]

    def test_question_answer_shorthand(self) -> None:
        candidate = parse_candidate(
            {"@type": "FAQPage", "mainEntity": {"name": "Q?", "acceptedAnswer": "Yes."}}
        )
        assert candidate.main_entity[0].accepted_answer.text == "Yes."

    def test_uncoercible_shape_raises(self) -> None:
        with pytest.raises(ValidationError):
            parse_candidate({"@type": "Product", "name": "W", "offers": ["cheap"]})


class TestRequiredFields:
    def test_known_types(self) -> None:
        assert required_fields("Event") == ("name", "startDate")
        assert required_fields("FAQPage") == ("mainEntity",)
        assert required_fields("NewsArticle") == ("headline",)

    def test_unknown_type_requires_nothing(self) -> None:
        assert required_fields("Book") == ()

    def test_every_registered_type_has_requirements(self) -> None:
        assert all(required_fields(name) for name in CANDIDATE_TYPES)
