"""Bulk product import helpers shared by the bulk-upload endpoint and the import_products command"""
import csv
import io
import logging

from django.db import IntegrityError, transaction
from backend.core.exceptions import DomainValidationError
from .models import Category
from .serializers import ProductSerializer

logger = logging.getLogger(__name__)

# CSV headers as exported by the old spreadsheet (camelCase) map onto model fields
CSV_HEADER_ALIASES = {
    'articlenumber': 'article_number',
    'artikelnummer': 'article_number',
    'naam': 'name',
    'omschrijving': 'description',
    'categoryid': 'category',
    'category_id': 'category',
    'categorie': 'category',
    'purchaseprice': 'purchase_price',
    'inkoopprijs': 'purchase_price',
    'sellingprice': 'selling_price',
    'verkoopprijs': 'selling_price',
    'btwpercentage': 'btw_percentage',
    'btw': 'btw_percentage',
    'voorraad': 'stock',
    'minstock': 'min_stock',
    'minimumvoorraad': 'min_stock',
    'afbeelding': 'image',
}


def normalize_header(header):
    key = (header or '').strip().lower().replace(' ', '_')
    return CSV_HEADER_ALIASES.get(key.replace('_', ''), CSV_HEADER_ALIASES.get(key, key))


def read_products_csv(file_obj):
    """Parse an uploaded CSV file into a list of product dicts keyed by model field"""
    raw = file_obj.read()
    if isinstance(raw, bytes):
        try:
            raw = raw.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            logger.warning(f"Rejected CSV upload with invalid encoding: {e}")
            raise DomainValidationError('Invalid CSV file', details={'file': ['File must be UTF-8 encoded']})
    sample = raw[:2048]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=',;')
    except csv.Error:
        dialect = csv.excel
    reader = csv.DictReader(io.StringIO(raw), dialect=dialect)
    rows = []
    try:
        for row in reader:
            cleaned = {
                normalize_header(key): (value.strip() if isinstance(value, str) else value)
                for key, value in row.items() if key
            }
            if any(v not in (None, '') for v in cleaned.values()):
                # Empty optional cells fall back to model defaults
                rows.append({k: v for k, v in cleaned.items() if v not in (None, '')})
    except csv.Error as e:
        raise DomainValidationError('Invalid CSV file', details={'file': [f"Line {reader.line_num}: {e}"]})
    return rows


def resolve_category(value):
    """Category cells may hold an id or a category name"""
    if value in (None, ''):
        return value
    if isinstance(value, int) or str(value).isdigit():
        return value
    category = Category.objects.filter(name__iexact=str(value).strip()).first()
    return category.pk if category else value


def bulk_create_products(rows):
    """
    Create products row by row, skipping rows that fail validation.

    Every row runs in its own savepoint so one bad row never rolls back
    the others. Returns (created_products, errors) where errors is a list of
    {'row': <1-based index>, 'errors': <field errors>}.
    """
    created = []
    errors = []
    for index, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            errors.append({'row': index, 'errors': {'non_field_errors': ['Row must be an object']}})
            continue
        data = {normalize_header(key): value for key, value in row.items()}
        if 'category' in data:
            data['category'] = resolve_category(data['category'])
        serializer = ProductSerializer(data=data)
        if not serializer.is_valid():
            errors.append({'row': index, 'errors': serializer.errors})
            continue
        try:
            with transaction.atomic():
                created.append(serializer.save())
        except IntegrityError as e:
            logger.warning(f"Bulk upload row {index} failed: {e}")
            errors.append({'row': index, 'errors': {'non_field_errors': [str(e)]}})
    logger.info(f"Bulk product import: {len(created)} created, {len(errors)} failed")
    return created, errors
