from importlib import import_module

modules = [
    'auth',
    'identity',
    'lots',
    'certification',
    'governance',
    'inspections',
    'settlement',
    'events',
    'audit',
]

for m in modules:
    import_module(f'.{m}', __name__)

__all__ = modules
