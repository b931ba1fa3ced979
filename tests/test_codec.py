from __future__ import annotations

from datetime import date

from household_inventory.codec import (
    HEADER,
    decode_items,
    encode_items,
    escape_field,
    parse_rows,
)
from household_inventory.schemas import Category, Item, Location

KITCHEN = Category(id="cat-kitchen", name="Kitchen")
FOOD = Category(id="cat-food", name="Food")
PANTRY = Location(id="loc-pantry", name="Pantry")
GARAGE = Location(id="loc-garage", name="Garage")
CATEGORIES = [KITCHEN, FOOD]
LOCATIONS = [PANTRY, GARAGE]


def _header(*columns: str) -> str:
    return ",".join(columns or HEADER)


def test_escape_field_quotes_only_when_needed() -> None:
    assert escape_field("plain") == "plain"
    assert escape_field("a,b") == '"a,b"'
    assert escape_field('say "hi"') == '"say ""hi"""'
    assert escape_field("two\nlines") == '"two\nlines"'
    assert escape_field("carriage\rreturn") == '"carriage\rreturn"'
    assert escape_field("") == ""


def test_parse_rows_handles_quotes_and_blank_lines() -> None:
    text = 'a,b\n"x,y",""""\n\n"multi\nline",last\r\n'

    assert parse_rows(text) == [["a", "b"], ["x,y", '"'], ["multi\nline", "last"]]


def test_parse_rows_keeps_trailing_empty_field() -> None:
    assert parse_rows("a,\nb,c") == [["a", ""], ["b", "c"]]
    assert parse_rows("") == []


def test_encode_writes_header_and_formats_values() -> None:
    item = Item(
        id="i-1",
        name="Olive oil",
        category_id=FOOD.id,
        location_id=PANTRY.id,
        quantity=2,
        value=3.0,
        tags=("oil", "cooking"),
        consumable=True,
    )

    lines = encode_items([item], CATEGORIES, LOCATIONS).split("\n")

    assert lines[0] == ",".join(HEADER)
    assert lines[1] == "i-1,Olive oil,Food,Pantry,2,,,,3,oil;cooking,,,,true,"


def test_encode_leaves_unresolved_names_empty() -> None:
    item = Item(id="i-2", name="Mystery", category_id="gone", location_id=None)

    row = parse_rows(encode_items([item], CATEGORIES, LOCATIONS))[1]

    assert row[2] == ""
    assert row[3] == ""


def test_round_trip_preserves_item_fields() -> None:
    items = [
        Item(
            id="i-1",
            name="Rice",
            category_id=FOOD.id,
            location_id=PANTRY.id,
            quantity=3,
            unit="kg",
            expiration_date=date(2026, 11, 2),
            condition="good",
            value=12.5,
            tags=("grain", "bulk"),
            photo_url="https://example.test/rice.png",
            barcode="4006381333931",
            notes="Basmati",
            consumable=True,
            is_food=True,
        ),
        Item(id="i-2", name="Hammer", category_id=KITCHEN.id, quantity=1),
    ]

    batch = decode_items(encode_items(items, CATEGORIES, LOCATIONS), CATEGORIES, LOCATIONS)

    assert batch.ignored == 0
    assert batch.new_categories == []
    assert batch.new_locations == []
    decoded = {item.id: item for item in batch.items}
    rice = decoded["i-1"]
    assert rice.name == "Rice"
    assert rice.category_id == FOOD.id
    assert rice.location_id == PANTRY.id
    assert rice.quantity == 3
    assert rice.unit == "kg"
    assert rice.expiration_date == date(2026, 11, 2)
    assert rice.condition == "good"
    assert rice.value == 12.5
    assert set(rice.tags) == {"grain", "bulk"}
    assert rice.photo_url == "https://example.test/rice.png"
    assert rice.barcode == "4006381333931"
    assert rice.notes == "Basmati"
    assert rice.consumable is True
    assert rice.is_food is True
    hammer = decoded["i-2"]
    assert hammer.location_id is None
    assert hammer.value is None
    assert hammer.tags == ()
    assert hammer.is_food is False


def test_quoted_fields_survive_round_trip() -> None:
    notes = 'He said "keep dry", then\nleft'
    item = Item(id="i-1", name="Tent, 2 person", category_id=KITCHEN.id, notes=notes)

    text = encode_items([item], CATEGORIES, LOCATIONS)
    decoded = decode_items(text, CATEGORIES, LOCATIONS).items[0]

    assert decoded.name == "Tent, 2 person"
    assert decoded.notes == notes


def test_rows_without_id_or_name_are_ignored() -> None:
    text = "\n".join(
        [
            _header("id", "name", "category"),
            "i-1,Soap,Kitchen",
            ",Nameless id,Kitchen",
            "i-3,,Kitchen",
            "  ,  ,",
            "",
        ]
    )

    batch = decode_items(text, CATEGORIES, LOCATIONS)

    assert [item.id for item in batch.items] == ["i-1"]
    assert batch.ignored == 2


def test_lenient_numbers_and_dates() -> None:
    text = "\n".join(
        [
            _header("id", "name", "quantity", "value", "expirationDate"),
            "a,Beans,-4,-3,not a date",
            "b,Pasta,12 boxes,4.75 EUR,2027-01-15T00:00:00Z",
            "c,Salt,abc,abc,",
        ]
    )

    decoded = {item.id: item for item in decode_items(text, CATEGORIES, LOCATIONS).items}

    assert decoded["a"].quantity == 0
    assert decoded["a"].value is None
    assert decoded["a"].expiration_date is None
    assert decoded["b"].quantity == 12
    assert decoded["b"].value == 4.75
    assert decoded["b"].expiration_date == date(2027, 1, 15)
    assert decoded["c"].quantity == 0
    assert decoded["c"].value is None


def test_boolean_columns() -> None:
    with_food = "\n".join(
        [
            _header("id", "name", "consumable", "isFood"),
            "a,Milk,TRUE,True",
            "b,Mop,yes,",
            "c,Bread,,false",
        ]
    )
    without_food = "\n".join([_header("id", "name", "consumable"), "d,Tape,true"])

    decoded = {item.id: item for item in decode_items(with_food, CATEGORIES, LOCATIONS).items}
    tape = decode_items(without_food, CATEGORIES, LOCATIONS).items[0]

    assert decoded["a"].consumable is True
    assert decoded["a"].is_food is True
    assert decoded["b"].consumable is False
    assert decoded["b"].is_food is False
    assert decoded["c"].is_food is False
    assert tape.consumable is True
    assert tape.is_food is None


def test_unknown_names_synthesize_records_once() -> None:
    text = "\n".join(
        [
            _header("name", "id", "location", "category"),
            "Drill,a,Shed,Garage Tools",
            "Saw,b,Shed,Garage Tools",
            "Spoon,c,,",
        ]
    )

    batch = decode_items(text, CATEGORIES, LOCATIONS)

    assert [category.name for category in batch.new_categories] == ["Garage Tools"]
    assert [location.name for location in batch.new_locations] == ["Shed"]
    decoded = {item.id: item for item in batch.items}
    assert decoded["a"].category_id == batch.new_categories[0].id
    assert decoded["b"].category_id == batch.new_categories[0].id
    assert decoded["a"].location_id == batch.new_locations[0].id
    assert decoded["c"].category_id == KITCHEN.id
    assert decoded["c"].location_id is None


def test_short_rows_and_trimmed_header() -> None:
    text = " id , name ,quantity,tags\nx,Candles"

    item = decode_items(text, CATEGORIES, LOCATIONS).items[0]

    assert item.id == "x"
    assert item.name == "Candles"
    assert item.quantity == 0
    assert item.tags == ()


def test_tags_are_trimmed_and_deduplicated() -> None:
    text = _header("id", "name", "tags") + "\nx,Gloves, winter ;;garden;winter"

    item = decode_items(text, CATEGORIES, LOCATIONS).items[0]

    assert item.tags == ("winter", "garden")


def test_missing_categories_synthesize_misc() -> None:
    text = _header("id", "name") + "\na,Thing\nb,Other"

    batch = decode_items(text, [], [])

    assert [category.name for category in batch.new_categories] == ["Misc"]
    assert {item.category_id for item in batch.items} == {batch.new_categories[0].id}


def test_empty_input_is_flagged() -> None:
    batch = decode_items("", CATEGORIES, LOCATIONS)

    assert batch.empty is True
    assert batch.items == []


def test_padded_names_resolve_to_existing_records() -> None:
    text = _header("id", "name", "category", "location") + '\na,Whisk, Kitchen ,"  Garage "'

    batch = decode_items(text, CATEGORIES, LOCATIONS)

    assert batch.new_categories == []
    assert batch.new_locations == []
    assert batch.items[0].category_id == KITCHEN.id
    assert batch.items[0].location_id == GARAGE.id
