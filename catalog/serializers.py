# catalog/serializers.py

from rest_framework import serializers

from .models import BrandPosition, Decant, Fragrance, UserFragrance


# ============ Decants ============
class DecantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Decant
        fields = [
            "id", "fragrance", "label", "price_cents", "quantity", "in_stock",
            "date_created", "last_modified",
        ]
        read_only_fields = ["date_created", "last_modified"]

    def validate_quantity(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("quantity must be >= 0 (or null for unlimited)")
        return value

    def validate_price_cents(self, value):
        if value <= 0:
            raise serializers.ValidationError("price_cents must be a positive integer")
        return value


class DecantListingSerializer(serializers.ModelSerializer):
    brand = serializers.CharField(source="fragrance.brand", read_only=True)
    name = serializers.CharField(source="fragrance.name", read_only=True)

    class Meta:
        model = Decant
        fields = ["id", "fragrance", "brand", "name", "label", "price_cents", "quantity", "in_stock"]


# ============ Fragrances ============
class AccordSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=60)
    strength = serializers.FloatField(min_value=0, max_value=100, required=False, allow_null=True)


class FragranceSerializer(serializers.ModelSerializer):
    accords = serializers.ListField(child=AccordSerializer(), required=False)

    class Meta:
        model = Fragrance
        fields = [
            "id", "brand", "brand_slug", "name", "slug",
            "image_url", "image_url_transparent", "fragrantica_url",
            "notes", "accords",
            "date_created", "last_modified",
        ]
        read_only_fields = ["brand_slug", "date_created", "last_modified"]


class FragranceDetailSerializer(FragranceSerializer):
    decants = serializers.SerializerMethodField()

    class Meta(FragranceSerializer.Meta):
        fields = FragranceSerializer.Meta.fields + ["decants"]

    def get_decants(self, obj):
        rows = obj.decants.filter(in_stock=True).order_by("price_cents")
        return DecantSerializer(rows, many=True).data


class BrandRepSerializer(serializers.Serializer):
    brand = serializers.CharField()
    brand_key = serializers.CharField()
    fragrance = FragranceSerializer()


# ============ Shelves ============
class ShelfLinkSerializer(serializers.ModelSerializer):
    fragrance = FragranceSerializer(read_only=True)

    class Meta:
        model = UserFragrance
        fields = ["id", "fragrance", "position", "shelf_index", "row_index", "column_key"]


class ShelfMoveSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    position = serializers.IntegerField(min_value=0)
    shelf_index = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    row_index = serializers.IntegerField(min_value=0, required=False)
    column_key = serializers.ChoiceField(choices=["left", "center", "right", ""], required=False)


# ============ Brand positions ============
class BrandPositionSerializer(serializers.ModelSerializer):
    class Meta:
        model = BrandPosition
        fields = ["brand_key", "x_pct", "y_pct", "is_public", "last_modified"]
        read_only_fields = ["last_modified"]


class BrandPositionInSerializer(serializers.Serializer):
    brand_key = serializers.CharField(max_length=255)
    x_pct = serializers.FloatField()
    y_pct = serializers.FloatField()


class PublishLayoutSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(choices=["from-db-private", "from-local"])
    map = serializers.DictField(child=serializers.DictField(), required=False)


# ============ Admin utilities ============
class RemoveBgSerializer(serializers.Serializer):
    imageUrl = serializers.URLField()
    fragranceId = serializers.IntegerField(min_value=1)


class ImportRowSerializer(serializers.Serializer):
    url = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    image = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    label = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ImportFragranticaSerializer(serializers.Serializer):
    rows = ImportRowSerializer(many=True, allow_empty=False)
    targetUsername = serializers.CharField(required=False, allow_blank=True)
