from holders_snapshot.services.ledger.ledger import AddressCollector, BalanceLedger, to_token_amount

__all__ = [
    'AddressCollector',
    'BalanceLedger',
    'to_token_amount'
]
