from holders_snapshot.services.balance.enricher import BalanceEnricher, parse_balance

__all__ = [
    'BalanceEnricher',
    'parse_balance'
]
