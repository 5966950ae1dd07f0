# Utility modules for the confectioner store
from .numbers import is_number, is_positive, finite_or_zero, non_negative, clamp, safe_float
from .ids import create_id, new_uuid, create_order_number, now_iso
