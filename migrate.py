#!/usr/bin/env python3
"""
Script para gestionar las migraciones de la base de facturación con Alembic.
"""
import sys
from pathlib import Path

# Agregar el directorio raíz al path
root_dir = Path(__file__).parent
sys.path.insert(0, str(root_dir))

from alembic.config import Config
from alembic import command
from app.core.config import settings

USAGE = """Uso:
  python migrate.py create 'message'  # Crear migración (autogenerate)
  python migrate.py upgrade            # Ejecutar migraciones
  python migrate.py downgrade          # Rollback de la última
  python migrate.py stamp              # Marcar la base existente como head
  python migrate.py history            # Ver historial
  python migrate.py current            # Ver actual"""


def get_alembic_config() -> Config:
    """Configuración de Alembic apuntando a la base de settings."""
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def main(argv):
    if len(argv) < 2:
        print(USAGE)
        return 1

    action = argv[1]
    alembic_cfg = get_alembic_config()

    if action == "create":
        if len(argv) < 3:
            print("Error: Se requiere un mensaje para la migración")
            return 1
        command.revision(alembic_cfg, autogenerate=True, message=argv[2])
        print(f"Migración creada: {argv[2]}")
    elif action == "upgrade":
        command.upgrade(alembic_cfg, "head")
        print("Migraciones ejecutadas exitosamente")
    elif action == "downgrade":
        command.downgrade(alembic_cfg, "-1")
        print("Rollback ejecutado exitosamente")
    elif action == "stamp":
        command.stamp(alembic_cfg, "head")
    elif action == "history":
        command.history(alembic_cfg)
    elif action == "current":
        command.current(alembic_cfg)
    else:
        print(f"Acción desconocida: {action}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
