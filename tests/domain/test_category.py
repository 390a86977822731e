import pytest
from protean.exceptions import ValidationError

from storefront.catalogue.category import Category


class TestCategory:
    def test_create_trims_name(self):
        category = Category.create(name="  Hogar ", description="", image_url="")
        assert category.name == "Hogar"
        assert category.description is None
        assert category.image_url is None

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_name_required(self, name):
        with pytest.raises(ValidationError) as exc:
            Category.create(name=name)
        assert exc.value.messages == {"name": ["Category name is required"]}

    def test_name_length_limit(self):
        with pytest.raises(ValidationError):
            Category.create(name="x" * 101)

    def test_update_leaves_missing_fields_alone(self):
        category = Category.create(name="Hogar", description="Casa")
        category.update_details(name="Hogar y Jardín")
        assert category.name == "Hogar y Jardín"
        assert category.description == "Casa"
