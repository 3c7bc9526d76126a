"""Nested variant trees: parsing, totals, breakdowns and merging."""
import pytest

from wms.domain.variants import (
    Leaf,
    Node,
    Variant,
    VariantDepthError,
    VariantValue,
    calculate_nested_variant_quantity,
    clone_with_zero_quantity,
    get_variant_breakdown,
    has_nested_variants,
    iter_leaves,
    merge_variants,
    parse_variants,
    sum_variant_value,
    variants_to_json,
)

NESTED = [
    {
        "attribute": "Size",
        "values": [
            {
                "value": "S",
                "quantity": 99,
                "sub_variants": [
                    {
                        "attribute": "Color",
                        "values": [
                            {"value": "Red", "quantity": 3, "minimum_quantity": 5},
                            {"value": "Blue", "quantity": 2},
                        ],
                    }
                ],
            },
            {"value": "M", "quantity": 5},
        ],
    }
]


def test_parse_skips_malformed_entries():
    raw = [{"attribute": ""}, "junk", {"attribute": "Size", "values": ["S", "", {"value": ""}, {"value": "M", "quantity": "4"}]}]
    variants = parse_variants(raw)
    assert len(variants) == 1
    assert [v.value for v in variants[0].values] == ["S", "M"]
    assert variants[0].values[1].content == Leaf(4)


def test_parse_accepts_camel_case_keys():
    raw = [{"attribute": "Size", "values": [{"value": "S", "subVariants": [{"attribute": "Color", "values": [{"value": "Red", "quantity": 1}]}], "minimumQuantity": 2}]}]
    value = parse_variants(raw)[0].values[0]
    assert isinstance(value.content, Node)
    assert value.minimum_quantity == 2


def test_parent_quantity_is_ignored_when_it_has_sub_variants():
    assert calculate_nested_variant_quantity(parse_variants(NESTED)) == 10


def test_flat_quantity_applies_without_variants():
    assert calculate_nested_variant_quantity([], 7) == 7


def test_breakdown_lists_non_empty_leaves():
    breakdown = get_variant_breakdown(parse_variants(NESTED))
    assert breakdown["Size: M"] == 5
    assert sum(breakdown.values()) == 10
    assert len(breakdown) == 3


def test_sum_variant_value_reaches_nested_leaves():
    variants = parse_variants(NESTED)
    assert sum_variant_value(variants, "Red") == 3
    assert sum_variant_value(variants, "S") == 0


def test_iter_leaves_paths():
    leaves = [(path, attribute, val.value) for path, attribute, val in iter_leaves(parse_variants(NESTED))]
    assert leaves == [
        ("Size: S → Color: Red", "Color", "Red"),
        ("Size: S → Color: Blue", "Color", "Blue"),
        ("Size: M", "Size", "M"),
    ]


def test_depth_limit():
    def nest(levels: int) -> Variant:
        if levels == 1:
            return Variant("L1", [VariantValue("x", Leaf(1))])
        return Variant(f"L{levels}", [VariantValue("x", Node([nest(levels - 1)]))])

    assert nest(3).depth == 3
    with pytest.raises(VariantDepthError):
        nest(4)


def test_json_rolls_up_parent_quantity():
    out = variants_to_json(parse_variants(NESTED))
    small = out[0]["values"][0]
    assert small["quantity"] == 5
    assert small["sub_variants"][0]["values"][0]["minimum_quantity"] == 5


def test_clone_keeps_shape_with_zero_stock():
    cloned = clone_with_zero_quantity(parse_variants(NESTED))
    assert has_nested_variants(cloned)
    assert calculate_nested_variant_quantity(cloned) == 0
    assert [p for p, _, _ in iter_leaves(cloned)] == [p for p, _, _ in iter_leaves(parse_variants(NESTED))]


def test_merge_adds_matching_leaves_case_insensitively():
    existing = parse_variants([{"attribute": "Size", "values": [{"value": "M", "quantity": 5}]}])
    incoming = parse_variants([{"attribute": " size ", "values": [{"value": "m", "quantity": 2}, {"value": "L", "quantity": 1}]}])

    merged = merge_variants(existing, incoming)

    assert [(v.value, v.content.quantity) for v in merged[0].values] == [("M", 7), ("L", 1)]
    assert existing[0].values[0].content.quantity == 5


def test_merge_recurses_into_sub_variants():
    existing = parse_variants(NESTED)
    incoming = parse_variants(
        [{"attribute": "Size", "values": [{"value": "S", "sub_variants": [{"attribute": "Color", "values": [{"value": "Red", "quantity": 4}, {"value": "Green", "quantity": 1}]}]}]}]
    )
    merged = merge_variants(existing, incoming)
    assert sum_variant_value(merged, "Red") == 7
    assert sum_variant_value(merged, "Green") == 1
    assert calculate_nested_variant_quantity(merged) == 15
