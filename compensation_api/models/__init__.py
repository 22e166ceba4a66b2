# compensation_api/models/__init__.py
import importlib
import pkgutil

# subpackages whose modules declare tables
_MODEL_PACKAGES = ("compensation_api.models", "compensation_api.models.payroll")


def load_all():
    """Import every model module so db.metadata knows all tables (create_all, Alembic autogenerate)."""
    for pkg_name in _MODEL_PACKAGES:
        pkg = importlib.import_module(pkg_name)
        for mod in pkgutil.iter_modules(pkg.__path__):
            if not mod.ispkg:
                importlib.import_module(f"{pkg_name}.{mod.name}")
