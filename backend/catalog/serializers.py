from rest_framework import serializers
from rest_framework.validators import UniqueValidator
from .models import Category, Product


class CategorySerializer(serializers.ModelSerializer):
    name = serializers.CharField(
        max_length=200,
        validators=[UniqueValidator(queryset=Category.objects.all(), message='This category already exists')]
    )

    class Meta:
        model = Category
        fields = ['id', 'name', 'created_at']
        read_only_fields = ['created_at']


class ProductSerializer(serializers.ModelSerializer):
    article_number = serializers.CharField(
        max_length=100,
        validators=[UniqueValidator(queryset=Product.objects.all(), message='This article number is already in use')],
        error_messages={'required': 'Article number is required', 'blank': 'Article number is required'}
    )
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        error_messages={
            'required': 'Category is required',
            'does_not_exist': 'Selected category does not exist',
            'incorrect_type': 'Selected category does not exist',
        }
    )
    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'article_number', 'name', 'description', 'category', 'category_name',
            'purchase_price', 'selling_price', 'btw_percentage', 'price_incl_btw',
            'image', 'stock', 'min_stock', 'is_low_stock', 'created_at', 'updated_at'
        ]
        # Derived fields are computed by Product.save(), never accepted from the client
        read_only_fields = ['price_incl_btw', 'is_low_stock', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'required': 'Name is required', 'blank': 'Name is required'}},
            'purchase_price': {'error_messages': {'required': 'Purchase price is required'}},
            'selling_price': {'error_messages': {'required': 'Selling price is required'}},
            'btw_percentage': {'max_value': 100},
        }


class StockUpdateSerializer(serializers.Serializer):
    stock = serializers.IntegerField(min_value=0)
