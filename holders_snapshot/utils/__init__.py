from holders_snapshot.utils.address import is_valid_address, normalize_address, validate_address

__all__ = [
    'is_valid_address',
    'normalize_address',
    'validate_address'
]
