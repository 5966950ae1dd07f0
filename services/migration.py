"""
Store Migration Service

Upgrades stored ingredient and recipe documents from any older shape to
the canonical one whenever the store is opened.

Record-level functions take a loose mapping (whatever was stored) and never
raise: missing or mistyped fields fall back to safe defaults and unusable
recipe items/sections are dropped. Collection-level upgrades are an ordered
list of version steps; only the steps after the stored version marker run,
each one inside a single transaction together with its marker update.
"""

import logging
from collections import namedtuple
from collections.abc import Mapping

from sqlalchemy.exc import SQLAlchemyError

from constants import KG_TO_G, MIN_LOSS_PCT, MAX_LOSS_PCT, MAIN_SECTION_NAME
from models import COLLECTIONS, StoreMeta, Ingredient, RecipeItem, RecipeSection, Recipe
from utils import is_number, is_positive, clamp, create_id, new_uuid, now_iso
from .exceptions import StoreError
from .units import resolve_base_unit

logger = logging.getLogger(__name__)

SCHEMA_VERSION_KEY = 'schema_version'

# A store without a version marker holds the original, unversioned layout
UNVERSIONED = 1


# ============================================
# FIELD HELPERS
# ============================================

def _as_mapping(value):
    return value if isinstance(value, Mapping) else {}


def _text(value, default=''):
    return value if isinstance(value, str) else default


def _optional_text(value):
    return value if isinstance(value, str) else None


def _has_text(value):
    return isinstance(value, str) and bool(value.strip())


def _record_id(raw):
    """Keep a non-empty string id, otherwise mint a new one."""
    value = raw.get('id')
    return value if _has_text(value) else new_uuid()


def _timestamps(raw, now):
    created_at = raw.get('createdAt')
    updated_at = raw.get('updatedAt')
    return (
        created_at if _has_text(created_at) else now,
        updated_at if _has_text(updated_at) else now,
    )


def _legacy_entries(raw):
    """Flat item list of a pre-sections recipe ('items', or older 'ingredients')."""
    if isinstance(raw.get('items'), list):
        return raw['items']
    if isinstance(raw.get('ingredients'), list):
        return raw['ingredients']
    return []


def _has_legacy_items(raw):
    return isinstance(raw.get('items'), list) or isinstance(raw.get('ingredients'), list)


def _yield_amount(raw):
    """yieldAmount if numeric, else legacy yieldKg in grams, else 1."""
    if is_number(raw.get('yieldAmount')):
        return raw['yieldAmount']
    if is_number(raw.get('yieldKg')):
        return raw['yieldKg'] * KG_TO_G
    return 1


# ============================================
# RECORD MIGRATIONS
# ============================================

def migrate_ingredient(raw, now=None):
    """
    Build a canonical Ingredient from a stored document of any generation.

    Base unit: a valid baseUnit wins, else the legacy 'unit' text
    ('ml'/'мл' -> ml, 'pcs'/'шт' -> pcs), else grams.
    Pack size: a positive packSize is kept, else 1.
    Pack price: packPrice, else legacy pricePerUnit, else 0.
    """
    raw = _as_mapping(raw)
    now = now or now_iso()

    pack_size = raw.get('packSize')
    if not is_positive(pack_size):
        pack_size = 1

    if is_number(raw.get('packPrice')):
        pack_price = raw['packPrice']
    elif is_number(raw.get('pricePerUnit')):
        pack_price = raw['pricePerUnit']
    else:
        pack_price = 0

    created_at, updated_at = _timestamps(raw, now)
    return Ingredient(
        id=_record_id(raw),
        name=_text(raw.get('name')),
        category=_text(raw.get('category')),
        base_unit=resolve_base_unit(raw.get('baseUnit'), raw.get('unit')),
        pack_size=pack_size,
        pack_price=pack_price,
        loss_pct=clamp(raw.get('lossPct'), MIN_LOSS_PCT, MAX_LOSS_PCT),
        created_at=created_at,
        updated_at=updated_at,
    )


def migrate_recipe_item(entry):
    """Coerce one stored recipe item, or return None when it is unusable."""
    if not isinstance(entry, Mapping):
        return None
    ingredient_id = entry.get('ingredientId')
    if not _has_text(ingredient_id):
        return None

    amount = entry.get('amount') if is_number(entry.get('amount')) else entry.get('qty')
    if not is_positive(amount):
        return None

    row_cost = entry.get('rowCost')
    return RecipeItem(
        ingredient_id=ingredient_id,
        amount=amount,
        unit=resolve_base_unit(entry.get('unit'), entry.get('unit')),
        row_cost=row_cost if is_number(row_cost) else None,
    )


def _migrate_items(entries):
    items = [migrate_recipe_item(entry) for entry in entries]
    kept = [item for item in items if item is not None]
    if len(kept) != len(items):
        logger.debug("Dropped %d unusable recipe item(s)", len(items) - len(kept))
    return kept


def migrate_section(candidate):
    """Coerce one stored section, or return None when it has no name."""
    if not isinstance(candidate, Mapping):
        return None
    name = candidate.get('name')
    if not _has_text(name):
        return None

    entries = candidate.get('items')
    output_amount = candidate.get('outputAmount')
    if not is_positive(output_amount):
        output_amount = None

    output_unit = None
    usage_amount = None
    if output_amount is not None:
        unit = candidate.get('outputUnit')
        output_unit = resolve_base_unit(unit, unit)
        if is_positive(candidate.get('usageAmount')):
            usage_amount = candidate['usageAmount']

    section_id = candidate.get('id')
    linked_recipe_id = candidate.get('linkedRecipeId')
    return RecipeSection(
        id=section_id if _has_text(section_id) else create_id('sec'),
        name=name.strip(),
        items=_migrate_items(entries if isinstance(entries, list) else []),
        notes=_optional_text(candidate.get('notes')),
        output_amount=output_amount,
        output_unit=output_unit,
        usage_amount=usage_amount,
        linked_recipe_id=linked_recipe_id if _has_text(linked_recipe_id) else None,
    )


def flatten_recipe_items(raw, now=None):
    """
    Stage 1: normalize a legacy recipe into a single flat item list.

    Returns the intermediate (flat) document, not a canonical Recipe.
    Documents that already carry sections and no flat items pass through
    with only their id and timestamps ensured.
    """
    raw = _as_mapping(raw)
    now = now or now_iso()
    created_at, updated_at = _timestamps(raw, now)

    if isinstance(raw.get('sections'), list) and not _has_legacy_items(raw):
        flat = dict(raw)
        flat.update(id=_record_id(raw), createdAt=created_at, updatedAt=updated_at)
        return flat

    flat = {
        'id': _record_id(raw),
        'name': _text(raw.get('name')),
        'category': _text(raw.get('category')),
        'yieldAmount': _yield_amount(raw),
        'yieldUnit': resolve_base_unit(raw.get('yieldUnit'), raw.get('yieldUnit')),
        'items': [item.to_dict() for item in _migrate_items(_legacy_entries(raw))],
        'notes': _text(raw.get('notes')),
    }
    if isinstance(raw.get('sections'), list):
        flat['sections'] = raw['sections']
    for key in ('fileName', 'fileUrl'):
        if isinstance(raw.get(key), str):
            flat[key] = raw[key]
    flat['createdAt'] = created_at
    flat['updatedAt'] = updated_at
    return flat


def section_recipe(raw, now=None):
    """
    Stage 2: turn a flat (or already sectioned) recipe into a canonical Recipe.

    Sections without a name are dropped. If none survive, a single
    "Main composition" section is built from the flat items, with the old
    yield becoming its output.
    """
    raw = _as_mapping(raw)
    now = now or now_iso()

    candidates = raw.get('sections') if isinstance(raw.get('sections'), list) else []
    sections = [migrate_section(candidate) for candidate in candidates]
    sections = [section for section in sections if section is not None]
    if len(sections) != len(candidates):
        logger.debug("Dropped %d unnamed section(s) from recipe %r",
                     len(candidates) - len(sections), raw.get('id'))

    if not sections:
        output_amount = _yield_amount(raw)
        has_output = is_positive(output_amount)
        sections.append(RecipeSection(
            id=create_id('sec'),
            name=MAIN_SECTION_NAME,
            items=_migrate_items(_legacy_entries(raw)),
            output_amount=output_amount if has_output else None,
            output_unit=resolve_base_unit(raw.get('yieldUnit'), raw.get('yieldUnit')) if has_output else None,
        ))

    created_at, updated_at = _timestamps(raw, now)
    return Recipe(
        id=_record_id(raw),
        name=_text(raw.get('name')),
        category=_text(raw.get('category')),
        sections=sections,
        notes=_text(raw.get('notes')),
        file_name=_optional_text(raw.get('fileName')),
        file_url=_optional_text(raw.get('fileUrl')),
        created_at=created_at,
        updated_at=updated_at,
    )


def migrate_recipe(raw, now=None):
    """Run both recipe stages on one stored document."""
    now = now or now_iso()
    return section_recipe(flatten_recipe_items(raw, now), now)


# ============================================
# VERSION STEPS
# ============================================

def _upgrade_ingredient_v2(raw, now):
    return migrate_ingredient(raw, now).to_dict()


def _upgrade_recipe_v3(raw, now):
    return section_recipe(raw, now).to_dict()


# transforms: collection name -> function(raw document, now) -> new document
Migration = namedtuple('Migration', ['version', 'description', 'transforms'])

MIGRATIONS = [
    Migration(2, 'normalize ingredient units/prices and recipe items', {
        'ingredients': _upgrade_ingredient_v2,
        'recipes': flatten_recipe_items,
    }),
    Migration(3, 'split recipes into sections', {
        'recipes': _upgrade_recipe_v3,
    }),
]

CURRENT_SCHEMA_VERSION = MIGRATIONS[-1].version


def get_schema_version(session):
    """Version recorded in the store; UNVERSIONED when there is no marker."""
    meta = session.get(StoreMeta, SCHEMA_VERSION_KEY)
    if meta is None:
        return UNVERSIONED
    try:
        return int(meta.value)
    except (TypeError, ValueError):
        logger.warning("Unreadable schema version %r, treating store as unversioned", meta.value)
        return UNVERSIONED


def _set_schema_version(session, version):
    meta = session.get(StoreMeta, SCHEMA_VERSION_KEY)
    if meta is None:
        session.add(StoreMeta(key=SCHEMA_VERSION_KEY, value=str(version)))
    else:
        meta.value = str(version)


def pending_migrations(session):
    """Steps that have not been applied to this store yet, in order."""
    current = get_schema_version(session)
    return [migration for migration in MIGRATIONS if migration.version > current]


def _migrate_collection(session, model, transform, now):
    """Rewrite every document of one collection. Returns the number changed."""
    changed = 0
    rows = session.query(model).order_by(model.id).all()
    taken = {row.id for row in rows}
    for row in rows:
        raw = dict(row.data) if isinstance(row.data, Mapping) else {}
        # A usable row key is the record's identity, whatever the document says
        if _has_text(row.id):
            raw['id'] = row.id

        migrated = transform(raw, now)
        if migrated['id'] != row.id:
            # Unusable row key: re-key under the document id, or a fresh one if taken
            if migrated['id'] in taken:
                migrated['id'] = new_uuid()
            logger.debug("Re-keying %s row %r as %s", model.__tablename__, row.id, migrated['id'])
            session.delete(row)
            session.add(model(id=migrated['id'], data=migrated))
            taken.add(migrated['id'])
            changed += 1
        elif row.data != migrated:
            row.data = migrated
            changed += 1
    return changed


def run_migrations(session, now=None):
    """
    Bring the store up to CURRENT_SCHEMA_VERSION.

    Each pending step rewrites its collections and records its version in
    one transaction; on failure the step is rolled back and StoreError is
    raised. Returns the store's version afterwards.
    """
    try:
        pending = pending_migrations(session)
    except SQLAlchemyError as exc:
        logger.exception("Unable to read the store schema version")
        raise StoreError('Unable to read the store schema version') from exc

    if not pending:
        logger.debug("Store is at schema v%s, nothing to migrate", CURRENT_SCHEMA_VERSION)
        return get_schema_version(session)

    now = now or now_iso()
    for migration in pending:
        try:
            counts = {
                collection: _migrate_collection(session, COLLECTIONS[collection], transform, now)
                for collection, transform in migration.transforms.items()
            }
            _set_schema_version(session, migration.version)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Store migration to v%s failed, rolled back", migration.version)
            raise StoreError(f"Store migration to v{migration.version} failed") from exc
        except Exception:
            session.rollback()
            raise

        summary = ', '.join(f"{count} {collection}" for collection, count in counts.items())
        logger.info("Migrated store to v%s (%s): %s updated",
                    migration.version, migration.description, summary)

    return pending[-1].version
