"""
Configuración centralizada para la migración acct → acctTarget (MongoDB → MongoDB).

ARQUITECTURA:
Migración de una sola pasada entre tres colecciones de la misma base:
- SOURCE_COLLECTION: Colección origen, de donde salen los UserID distintos
- LOOKUP_COLLECTION: Colección maestra unida por AccountNumber ($lookup)
- TARGET_COLLECTION: Colección destino donde se insertan los documentos reformateados

FLUJO DE MIGRACIÓN:
1. distinct(UserID) sobre la colección origen
2. Por cada UserID: aggregate (match → lookup → unwind → group → project)
3. Los resultados se acumulan y se insertan con insert_many cada BATCH_SIZE

USO DE LAS FUNCIONES HELPER:
    # Obtener nombres de colecciones configurados
    names = get_collection_names()
    print(names['target'])  # 'acctTarget'

    # Validar antes de migrar
    validate_collection_names(names)
    batch_size = validate_batch_size(BATCH_SIZE)
"""

import os
from dotenv import load_dotenv

# Carga las variables del archivo .env en las variables de entorno del sistema
load_dotenv(override=True)

# --- Configuración de MongoDB ---
# Sin valor por defecto: el endpoint siempre viene del entorno o de --uri
MONGO_URI = os.getenv("MONGO_URI") or ""

# Si está vacío se usa la base incluida en la URI (mongodb://host:27017/demo → demo)
MONGO_DATABASE_NAME = os.getenv("MONGO_DATABASE") or None

SERVER_SELECTION_TIMEOUT_MS = 5000

# --- Configuración de Colecciones ---
SOURCE_COLLECTION = os.getenv("SOURCE_COLLECTION") or "acct"
LOOKUP_COLLECTION = os.getenv("LOOKUP_COLLECTION") or "acctMaster"
TARGET_COLLECTION = os.getenv("TARGET_COLLECTION") or "acctTarget"

# --- Configuración del Pipeline ---
IDENTIFIER_FIELD = "UserID"  # Campo sobre el que se hace distinct()
JOIN_FIELD = "AccountNumber"  # localField/foreignField del $lookup
ALLOW_DISK_USE = True  # El $group puede superar el límite de memoria del servidor

# --- Configuración de Migración ---
BATCH_SIZE = os.getenv("MIGRATION_BATCH_SIZE") or 1000  # Documentos por insert_many


# --- Funciones Helper ---


def get_collection_names() -> dict:
    """
    Retorna los nombres de colecciones configurados.

    Returns:
        dict: {'source': str, 'lookup': str, 'target': str}

    Ejemplo:
        >>> get_collection_names()['lookup']
        'acctMaster'
    """
    return {
        "source": SOURCE_COLLECTION,
        "lookup": LOOKUP_COLLECTION,
        "target": TARGET_COLLECTION,
    }


def validate_collection_names(names: dict) -> dict:
    """
    Valida el set de colecciones antes de migrar.

    Reglas:
    - Deben existir las tres keys (source, lookup, target)
    - Ningún nombre puede estar vacío
    - El destino no puede ser el origen ni la colección lookup
      (se estaría insertando sobre lo que se está leyendo)

    Args:
        names: Dict con keys 'source', 'lookup', 'target'

    Returns:
        dict: El mismo dict, para encadenar

    Raises:
        KeyError: Si falta alguna key
        ValueError: Si algún nombre es inválido
    """
    for key in ("source", "lookup", "target"):
        if key not in names:
            raise KeyError(
                f"Falta la colección '{key}'.\n"
                f"Colecciones requeridas: source, lookup, target"
            )
        if not names[key] or not str(names[key]).strip():
            raise ValueError(f"El nombre de la colección '{key}' está vacío")

    if names["target"] in (names["source"], names["lookup"]):
        raise ValueError(
            f"La colección destino '{names['target']}' no puede ser "
            f"la colección origen ni la colección lookup"
        )

    return names


def validate_batch_size(value) -> int:
    """
    Convierte y valida el tamaño de batch.

    Acepta int o str (viene de variables de entorno o argumentos CLI).

    Raises:
        ValueError: Si no es un entero positivo

    Ejemplo:
        >>> validate_batch_size("500")
        500
    """
    try:
        batch_size = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Tamaño de batch inválido: {value!r} (debe ser entero)")

    if batch_size < 1:
        raise ValueError(f"Tamaño de batch inválido: {batch_size} (debe ser >= 1)")

    return batch_size


def get_mongo_uri(override=None) -> str:
    """
    Obtiene la URI de conexión (argumento CLI > variable de entorno).

    Raises:
        ValueError: Si no hay URI configurada
    """
    uri = override or MONGO_URI
    if not uri:
        raise ValueError(
            "MONGO_URI no está configurada.\n"
            "Definirla en .env o pasar --uri mongodb://host:27017/base"
        )
    return uri
