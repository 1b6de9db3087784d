"""
export_sample.py - Exporta muestra de una colección MongoDB a JSON

Pensado para revisar la colección destino después de la migración
(por defecto config.TARGET_COLLECTION).

Uso:
    python export_sample.py [collection_name] [limit]

Ejemplo:
    python export_sample.py acctTarget 200
"""

import sys
from pathlib import Path
from bson.json_util import dumps
from pymongo import MongoClient
import config


def export_collection_sample(db, collection_name, limit=200, output_dir="samples"):
    """
    Exporta muestra de una colección a JSON en formato Extended JSON.

    Args:
        db: Database de pymongo
        collection_name: Nombre de la colección en MongoDB
        limit: Número de documentos a exportar
        output_dir: Directorio destino (se crea si no existe)

    Returns:
        Path | None: Archivo generado, o None si la colección está vacía
    """
    collection = db[collection_name]

    print(f"📥 Obteniendo {limit} documentos de '{collection_name}'...")
    docs = list(collection.find().limit(limit))

    if not docs:
        print(f"⚠️  La colección '{collection_name}' está vacía o no existe")
        return None

    samples_dir = Path(output_dir)
    samples_dir.mkdir(parents=True, exist_ok=True)

    # Serializar usando bson.json_util (mantiene tipos de MongoDB)
    json_output = dumps(docs, indent=2, ensure_ascii=False)

    filename = samples_dir / f"{collection_name}_sample.json"
    with open(filename, "w", encoding="utf-8") as f:
        f.write(json_output)

    print(f"✅ Exportados {len(docs)} documentos")
    print(f"📄 Archivo: {filename}")
    print(f"📊 Tamaño: {len(json_output) / 1024:.2f} KB")
    return filename


if __name__ == "__main__":
    collection_name = sys.argv[1] if len(sys.argv) > 1 else config.TARGET_COLLECTION
    limit = int(sys.argv[2]) if len(sys.argv) > 2 else 200

    client = MongoClient(config.get_mongo_uri())
    try:
        if config.MONGO_DATABASE_NAME:
            db = client[config.MONGO_DATABASE_NAME]
        else:
            db = client.get_default_database()
        export_collection_sample(db, collection_name, limit)
    finally:
        client.close()
