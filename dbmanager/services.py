# dbmanager/services.py
"""
Generic table access for the database manager and the "database" data
source of PDF templates.

Tables are created and altered through Django's schema editor with models
built on the fly in an isolated app registry; rows are read and written with
plain SQL, quoting every identifier with connection.ops.quote_name.
"""
import logging
import re
from decimal import Decimal, InvalidOperation

from django.apps import apps as django_apps
from django.apps.registry import Apps
from django.db import connection, models
from django.db.models.expressions import RawSQL
from django.utils import timezone

logger = logging.getLogger(__name__)

IDENTIFIER_RE = re.compile(r'^[a-z_]+$')
COLUMN_TYPES = ('string', 'text', 'integer', 'decimal', 'boolean', 'date', 'datetime')

# Apps whose tables are never offered as a PDF data source.
SYSTEM_APPS = ('admin', 'auth', 'contenttypes', 'sessions', 'pdftemplates', 'dataimports')
TIMESTAMP_COLUMNS = ('created_at', 'updated_at')


class TableNotFound(Exception):
    pass


class ProtectedTable(Exception):
    pass


def qn(name):
    return connection.ops.quote_name(name)


# ---------------------------
# Introspection
# ---------------------------

def table_names():
    names = connection.introspection.table_names()
    return sorted(n for n in names if not n.startswith('sqlite_'))


def table_exists(table):
    return table in table_names()


def require_table(table):
    if not table or not table_exists(table):
        raise TableNotFound(f"Table not found: {table}")
    return table


def protected_tables():
    """Tables owned by installed Django models, plus the migrations ledger."""
    return set(connection.introspection.django_table_names(include_views=False)) | {'django_migrations'}


def system_tables():
    names = {'django_migrations'}
    for label in SYSTEM_APPS:
        try:
            config = django_apps.get_app_config(label)
        except LookupError:
            continue
        names.update(m._meta.db_table for m in config.get_models(include_auto_created=True))
    return names


def available_tables():
    """Tables a PDF template can read records from."""
    hidden = system_tables()
    return [n for n in table_names() if n not in hidden]


def describe(table):
    with connection.cursor() as cursor:
        return connection.introspection.get_table_description(cursor, table)


def column_names(table):
    return [col.name for col in describe(require_table(table))]


def primary_key(table):
    with connection.cursor() as cursor:
        return connection.introspection.get_primary_key_column(cursor, table) or 'id'


def row_count(table):
    with connection.cursor() as cursor:
        cursor.execute(f"SELECT COUNT(*) FROM {qn(table)}")
        return cursor.fetchone()[0]


def _dict_rows(cursor):
    names = [col[0] for col in cursor.description]
    return [dict(zip(names, row)) for row in cursor.fetchall()]


def fetch_rows(table, limit=None):
    require_table(table)
    sql = f"SELECT * FROM {qn(table)}"
    params = []
    if limit:
        sql += " LIMIT %s"
        params.append(int(limit))
    with connection.cursor() as cursor:
        cursor.execute(sql, params)
        return _dict_rows(cursor)


def fetch_row(table, pk):
    """One row as a dict, or None."""
    require_table(table)
    with connection.cursor() as cursor:
        cursor.execute(f"SELECT * FROM {qn(table)} WHERE {qn(primary_key(table))} = %s", [pk])
        rows = _dict_rows(cursor)
    return rows[0] if rows else None


def list_tables():
    data = []
    for name in table_names():
        columns = [col.name for col in describe(name)]
        data.append({
            'name': name,
            'columns': columns,
            'column_count': len(columns),
            'row_count': row_count(name),
        })
    return data


# ---------------------------
# Schema changes
# ---------------------------

def _coerce_default(column_type, value):
    if value is None or value == '':
        return None
    if column_type == 'boolean':
        return str(value).strip().lower() in ('1', 'true', 'yes', 'on')
    if column_type == 'integer':
        return int(value)
    if column_type == 'decimal':
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid decimal default: {value}")
    return str(value)


def build_field(column):
    """Model field for a column definition {name, type, nullable, default}."""
    column_type = column['type']
    kwargs = {'null': bool(column.get('nullable'))}
    if kwargs['null']:
        kwargs['blank'] = True
    default = _coerce_default(column_type, column.get('default'))
    if default is not None:
        kwargs['db_default'] = default

    if column_type == 'string':
        field = models.CharField(max_length=255, **kwargs)
    elif column_type == 'text':
        field = models.TextField(**kwargs)
    elif column_type == 'integer':
        field = models.IntegerField(**kwargs)
    elif column_type == 'decimal':
        field = models.DecimalField(max_digits=10, decimal_places=2, **kwargs)
    elif column_type == 'boolean':
        field = models.BooleanField(**kwargs)
    elif column_type == 'date':
        field = models.DateField(**kwargs)
    elif column_type == 'datetime':
        field = models.DateTimeField(**kwargs)
    else:
        raise ValueError(f"Unsupported column type: {column_type}")
    field.set_attributes_from_name(column['name'])
    return field


def _introspected_field(row):
    """Rebuild a model field from an introspected column (as inspectdb does)."""
    try:
        field_type = connection.introspection.get_field_type(row.type_code, row)
    except KeyError:
        field_type = 'TextField'
    if isinstance(field_type, tuple):
        field_type = field_type[0]

    kwargs = {}
    if field_type in ('AutoField', 'BigAutoField', 'SmallAutoField'):
        kwargs['primary_key'] = True
    else:
        kwargs['null'] = bool(row.null_ok)
        if getattr(row, 'default', None) is not None:
            # keep column defaults when SQLite rebuilds the table
            kwargs['db_default'] = RawSQL(row.default, [])
    if field_type == 'CharField':
        kwargs['max_length'] = row.display_size or row.internal_size or 255
    elif field_type == 'DecimalField':
        kwargs['max_digits'] = row.precision or 10
        kwargs['decimal_places'] = row.scale or 2

    field_class = getattr(models, field_type, models.TextField)
    return field_class(**kwargs)


def _dynamic_model(table, fields):
    registry = Apps()
    meta = type('Meta', (), {'db_table': table, 'app_label': 'dbmanager_dynamic', 'apps': registry})
    attrs = {'__module__': __name__, 'Meta': meta}
    attrs.update(fields)
    name = ''.join(part.capitalize() for part in table.split('_')) or 'Table'
    return type(f"Dynamic{name}", (models.Model,), attrs)


def _existing_model(table):
    fields = {}
    pk = primary_key(table)
    for row in describe(table):
        field = _introspected_field(row)
        if row.name == pk:
            field.primary_key = True
        fields[row.name] = field
    if not any(f.primary_key for f in fields.values()):
        fields.setdefault('id', models.AutoField(primary_key=True))
    return _dynamic_model(table, fields)


def validate_identifier(name, what='name'):
    if not name or not IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid {what}: {name!r} (lowercase letters and underscores only)")
    return name


def create_table(table, columns):
    """
    Create `table` with an auto id, the given columns and nullable
    created_at/updated_at timestamps.
    """
    validate_identifier(table, 'table name')
    if table_exists(table):
        raise ValueError('Table already exists')
    names = [c['name'] for c in columns]
    reserved = {'id', *TIMESTAMP_COLUMNS}
    if len(set(names)) != len(names) or reserved & set(names):
        raise ValueError('Column names must be unique and must not be id, created_at or updated_at')

    fields = {'id': models.BigAutoField(primary_key=True)}
    for column in columns:
        validate_identifier(column['name'], 'column name')
        fields[column['name']] = build_field(column)
    for name in TIMESTAMP_COLUMNS:
        fields[name] = models.DateTimeField(null=True, blank=True)

    model = _dynamic_model(table, fields)
    with connection.schema_editor() as editor:
        editor.create_model(model)
    logger.info("Created table %s with columns %s", table, names)
    return table


def add_column(table, column):
    require_table(table)
    validate_identifier(column['name'], 'column name')
    if column['name'] in column_names(table):
        raise ValueError('Column already exists')

    model = _existing_model(table)
    field = build_field(column)
    field.model = model
    with connection.schema_editor() as editor:
        editor.add_field(model, field)
    logger.info("Added column %s.%s (%s)", table, column['name'], column['type'])


def drop_table(table):
    if table in protected_tables():
        raise ProtectedTable(f"Cannot delete protected table: {table}")
    require_table(table)
    with connection.schema_editor() as editor:
        editor.execute(editor.sql_delete_table % {'table': qn(table)})
    logger.info("Dropped table %s", table)


# ---------------------------
# Rows
# ---------------------------

def _row_values(table, data, exclude=('id',)):
    columns = set(column_names(table))
    values = {k: v for k, v in data.items() if k not in exclude}
    unknown = sorted(set(values) - columns)
    if unknown:
        raise ValueError(f"Unknown column(s): {', '.join(unknown)}")
    return values, columns


def insert_row(table, data):
    """Insert a row and return its id. Timestamps are filled when present."""
    values, columns = _row_values(table, data)
    now = timezone.now()
    for name in TIMESTAMP_COLUMNS:
        if name in columns and values.get(name) in (None, ''):
            values[name] = now

    pk = primary_key(table)
    names = list(values)
    if names:
        sql = (f"INSERT INTO {qn(table)} ({', '.join(qn(n) for n in names)}) "
               f"VALUES ({', '.join(['%s'] * len(names))})")
    else:
        sql = f"INSERT INTO {qn(table)} DEFAULT VALUES"
    returning = connection.features.can_return_columns_from_insert
    if returning:
        sql += f" RETURNING {qn(pk)}"

    with connection.cursor() as cursor:
        cursor.execute(sql, [values[n] for n in names])
        if returning:
            return cursor.fetchone()[0]
        return cursor.lastrowid


def update_row(table, pk, data):
    """Update one row; returns the number of rows changed."""
    values, columns = _row_values(table, data)
    if 'updated_at' in columns and 'updated_at' not in values:
        values['updated_at'] = timezone.now()
    if not values:
        return 0
    assignments = ', '.join(f"{qn(n)} = %s" for n in values)
    with connection.cursor() as cursor:
        cursor.execute(
            f"UPDATE {qn(table)} SET {assignments} WHERE {qn(primary_key(table))} = %s",
            [*values.values(), pk],
        )
        return cursor.rowcount


def delete_row(table, pk):
    require_table(table)
    with connection.cursor() as cursor:
        cursor.execute(f"DELETE FROM {qn(table)} WHERE {qn(primary_key(table))} = %s", [pk])
        return cursor.rowcount
