from importlib import import_module

modules = [
    'auth',
    'users',
    'user_activity',
    'flight_records',
    'stock_inventory',
    'incoming_inspections',
    'airport_ids',
    'sdr_reports',
    'sms_reports',
    'technician_training',
    'document_storage',
    'technical_queries',
    'temperature_control',
    'temperature_humidity_config',
    'manuals',
    'defect_analytics',
    'fleet_analytics',
]

for m in modules:
    import_module(f'.{m}', __name__)

__all__ = modules
