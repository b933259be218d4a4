from django.db import transaction
from rest_framework import serializers
from backend.catalog.models import Product
from .models import Customer, CustomerProduct


class CustomerProductSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(source='product.id', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    article_number = serializers.CharField(source='product.article_number', read_only=True)

    class Meta:
        model = CustomerProduct
        fields = ['id', 'product_id', 'product_name', 'article_number', 'created_at']


class CustomerSerializer(serializers.ModelSerializer):
    customer_products = CustomerProductSerializer(many=True, read_only=True)
    product_ids = serializers.PrimaryKeyRelatedField(
        queryset=Product.objects.all(), many=True, write_only=True, required=False
    )

    class Meta:
        model = Customer
        fields = [
            'id', 'name', 'email', 'phone', 'address', 'city', 'postal_code', 'notes',
            'customer_products', 'product_ids', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def create(self, validated_data):
        products = validated_data.pop('product_ids', None)
        with transaction.atomic():
            customer = Customer.objects.create(**validated_data)
            if products:
                replace_customer_products(customer, products)
        return customer

    def update(self, instance, validated_data):
        products = validated_data.pop('product_ids', None)
        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.save()
            # Omitted product_ids leaves the associations untouched
            if products is not None:
                replace_customer_products(instance, products)
        return instance


class CustomerProductCreateSerializer(serializers.Serializer):
    product_id = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), source='product')


def replace_customer_products(customer, products):
    """Replace the product associations wholesale: delete all, then insert"""
    CustomerProduct.objects.filter(customer=customer).delete()
    unique_products = list({product.pk: product for product in products}.values())
    CustomerProduct.objects.bulk_create(
        [CustomerProduct(customer=customer, product=product) for product in unique_products]
    )
