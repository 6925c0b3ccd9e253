"""
Unit tests for the data models.

Tests follow the Given/When/Then pattern for clarity.
"""

from scripts.lib.models import Asset, Metadata, Trait, parse_traits


class TestTrait:
    """Tests for the Trait model."""

    def test_equality_is_exact_on_type_and_value(self):
        """
        Given traits with equal and differing fields
        When comparing them
        Then only identical (trait_type, value) pairs should be equal
        """
        # Given / When / Then
        assert Trait("color", "red") == Trait("color", "red")
        assert Trait("color", "red") != Trait("Color", "red")
        assert Trait("level", 1) != Trait("level", "1")
        assert Trait("color", "red").key == ("color", "red")

    def test_from_dict_accepts_type_alias(self):
        # Given
        data = {"type": "Background", "value": "Blue"}

        # When
        trait = Trait.from_dict(data)

        # Then
        assert trait == Trait("Background", "Blue")


class TestParseTraits:
    """Tests for parse_traits."""

    def test_keeps_order_and_skips_entries_without_value(self):
        """
        Given a raw attribute list with a malformed entry
        When parsing it
        Then valid traits should be returned in order
        """
        # Given
        raw = [
            {"trait_type": "Eyes", "value": "Laser"},
            {"trait_type": "Hat"},
            "not-a-dict",
            {"trait_type": "Level", "value": 3},
        ]

        # When
        traits = parse_traits(raw)

        # Then
        assert traits == [Trait("Eyes", "Laser"), Trait("Level", 3)]

    def test_skips_values_that_are_not_strings_or_numbers(self):
        """
        Given attributes whose values are a list, an object and a boolean
        When parsing them
        Then only the string and number values should be kept
        """
        # Given
        raw = [
            {"trait_type": "tags", "value": ["a", "b"]},
            {"trait_type": "Eyes", "value": "Laser"},
            {"trait_type": "stats", "value": {"power": 3}},
            {"trait_type": "Legendary", "value": True},
            {"trait_type": "Weight", "value": 1.5},
        ]

        # When
        traits = parse_traits(raw)

        # Then
        assert traits == [Trait("Eyes", "Laser"), Trait("Weight", 1.5)]

    def test_non_list_yields_empty(self):
        assert parse_traits(None) == []
        assert parse_traits({"trait_type": "x", "value": 1}) == []


class TestAsset:
    """Tests for the Asset model."""

    def test_from_listing_parses_marketplace_fields(self):
        """
        Given a marketplace listing dict
        When building an Asset
        Then id, name, traits and owner should be populated
        """
        # Given
        listing = {
            "token_id": "1234",
            "name": "Ape #1234",
            "traits": [{"trait_type": "Fur", "value": "Gold", "trait_count": 46}],
            "owner": {"address": "0xabc"},
        }

        # When
        asset = Asset.from_listing(listing)

        # Then
        assert asset.token_id == "1234"
        assert asset.name == "Ape #1234"
        assert asset.traits == [Trait("Fur", "Gold")]
        assert asset.owner == "0xabc"
        assert asset.metadata is None

    def test_rarity_traits_prefer_listing_traits(self):
        # Given
        asset = Asset(
            token_id=1,
            traits=[Trait("Fur", "Gold")],
            metadata=Metadata(None, None, None, None, [Trait("Fur", "Brown")]),
        )

        # When / Then
        assert asset.rarity_traits == [Trait("Fur", "Gold")]

    def test_rarity_traits_fall_back_to_metadata_attributes(self):
        """
        Given an asset whose listing omitted traits
        When reading the rarity traits
        Then the resolved metadata attributes should be used
        """
        # Given
        asset = Asset(
            token_id=1,
            metadata=Metadata("Ape", None, None, None, [Trait("Fur", "Brown")]),
        )

        # When / Then
        assert asset.rarity_traits == [Trait("Fur", "Brown")]

    def test_rarity_traits_empty_without_any_source(self):
        assert Asset(token_id=1).rarity_traits == []

    def test_display_name_fallbacks(self):
        # Given / When / Then
        assert Asset(token_id=7).display_name == "Token #7"
        assert Asset(token_id=7, name="Listing Name").display_name == "Listing Name"
        assert (
            Asset(
                token_id=7,
                name="Listing Name",
                metadata=Metadata("Metadata Name", None, None, None),
            ).display_name
            == "Metadata Name"
        )
