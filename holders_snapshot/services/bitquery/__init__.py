from holders_snapshot.services.bitquery.client import BitqueryClient, GraphQLResponse

__all__ = [
    'BitqueryClient',
    'GraphQLResponse'
]
