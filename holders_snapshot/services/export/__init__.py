from holders_snapshot.services.export.csv_exporter import CSV_HEADER, HolderCsvExporter, format_balance

__all__ = [
    'CSV_HEADER',
    'HolderCsvExporter',
    'format_balance'
]
