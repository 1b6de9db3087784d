r"""
Script principal de migración acct → acctTarget (MongoDB → MongoDB).

Arquitectura:
- mongomigra.py: Infraestructura genérica (conexión, iteración, progreso)
- batching.py: Acumulador con flush por umbral (insert_many)
- migrators/*.py: Pipeline de aggregate específico (implementan BaseMigrator)
- config.py: Configuración centralizada (.env)

Flujo de ejecución:
1. Lectura de configuración (.env + argumentos CLI)
2. Conexión a MongoDB (ping)
3. Validación de colecciones origen y lookup
4. distinct(UserID) sobre la colección origen
5. Por cada UserID: aggregate y acumulación documento a documento
6. insert_many cada BATCH_SIZE documentos y del resto al final

Manejo de errores:
- Cualquier error de consulta o de inserción aborta la corrida (exit 1)
- Sin reintentos: los documentos del batch fallido se reportan como perdidos

Uso:
    python mongomigra.py
    python mongomigra.py --source acct --lookup acctMaster --target acctTarget
    python mongomigra.py --uri mongodb://localhost:27017/demo --batch-size 500
"""

import argparse
import sys
import traceback
from pymongo import MongoClient
from pymongo.errors import ConfigurationError, ConnectionFailure

import config
from batching import BatchAccumulator, BatchWriteError
from migrators.acct import AcctMigrator


def connect_to_mongo(uri, database_name=None):
    """
    Establece conexión a MongoDB.

    Args:
        uri: URI de conexión
        database_name: Base a usar. Si es None se toma de la URI.

    Returns:
        tuple: (client, database) de pymongo

    Raises:
        SystemExit: Si no puede conectar
    """
    try:
        print("🔌 Conectando a MongoDB...")
        client = MongoClient(
            uri, serverSelectionTimeoutMS=config.SERVER_SELECTION_TIMEOUT_MS
        )
        client.admin.command("ping")
        if database_name:
            db = client[database_name]
        else:
            db = client.get_default_database()
        print(f"✅ Conexión a MongoDB exitosa (base: {db.name})")
        return client, db
    except ConnectionFailure as e:
        print(f"❌ Error de conexión a MongoDB", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        sys.exit(1)
    except ConfigurationError as e:
        # URI sin base y sin MONGO_DATABASE/--database
        print(f"❌ No se pudo determinar la base de datos", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        sys.exit(1)


def validate_source_collections(db, migrator):
    """
    Verifica que las colecciones origen y lookup existan en la base.

    Solo informa: una colección origen ausente no tiene identificadores y una
    lookup ausente no produce documentos, así que la migración termina sin
    insertar nada. La colección destino no se valida: insert_many la crea.

    Args:
        db: Database de pymongo
        migrator: Instancia de BaseMigrator

    Returns:
        list: Colecciones faltantes
    """
    print(f"\n🔍 Validando colecciones...")

    existing = set(db.list_collection_names())
    missing = []

    for role, name in (("origen", migrator.source), ("lookup", migrator.lookup)):
        if name in existing:
            print(f"   ✅ {role}: {name}")
        else:
            missing.append(name)
            print(f"   ⚠️  {role}: {name} (no existe)")

    return missing


def migrate_collection(db, migrator, batch_size=None):
    """
    Orquesta una pasada completa sobre los identificadores distintos.

    Flujo:
    1. Obtener identificadores distintos (distinct)
    2. Por cada identificador ejecutar el pipeline (aggregate)
    3. Acumular cada documento resultante y chequear flush por documento
    4. Insertar el resto al finalizar

    Los batches no están alineados por identificador: un flush puede mezclar
    documentos de varios UserID.

    Args:
        db: Database de pymongo
        migrator: Instancia de BaseMigrator
        batch_size: Documentos por insert_many (default: config.BATCH_SIZE)

    Returns:
        dict: {'identifiers': int, 'records': int, 'batches': int}

    Raises:
        BatchWriteError: Si falla un insert_many (corrida abortada)
        PyMongoError: Si falla distinct o aggregate
    """
    print(
        f"\n🚚 Iniciando migración '{migrator.source}' → '{migrator.target}' "
        f"(lookup: '{migrator.lookup}')..."
    )

    accumulator = BatchAccumulator(
        lambda records: migrator.insert_batch(db, records), batch_size=batch_size
    )

    print(f"   🔎 distinct('{migrator.identifier_field}') sobre '{migrator.source}'...")
    identifiers = migrator.extract_identifiers(db)

    print(f"   📦 Tamaño de batch: {accumulator.batch_size}")

    count = 0
    records = 0

    for identifier in identifiers:
        count += 1

        for doc in migrator.extract_data(db, identifier):
            records += 1
            accumulator.append(doc)

            written = accumulator.maybe_flush()
            if written:
                print(
                    f"\r\033[K   💾 Insertados {written:,} documentos "
                    f"(total: {accumulator.total_written:,})"
                )

        print(
            f"\r\033[K⏳ Identificadores procesados: {count:,} | "
            f"Documentos: {records:,}",
            end="",
            flush=True,
        )

    print("\n   💾 Insertando documentos restantes...")
    written = accumulator.final_flush()
    if written:
        print(f"   ✅ Insertados {written:,} documentos restantes")

    print(
        f"\n✅ Migración completada: {count:,} identificadores, "
        f"{accumulator.total_written:,} documentos en {accumulator.flush_count} batches"
    )

    return {
        "identifiers": count,
        "records": accumulator.total_written,
        "batches": accumulator.flush_count,
    }


def parse_args(argv=None):
    """
    Argumentos de línea de comandos. Los defaults salen de config.py.
    """
    parser = argparse.ArgumentParser(
        prog="mongomigra",
        description="Migración acct + acctMaster → acctTarget por aggregate",
    )
    parser.add_argument("--uri", default=None, help="URI de MongoDB (default: MONGO_URI)")
    parser.add_argument(
        "--database",
        default=config.MONGO_DATABASE_NAME,
        help="Base de datos (default: MONGO_DATABASE o la base de la URI)",
    )
    parser.add_argument("--source", default=config.SOURCE_COLLECTION)
    parser.add_argument("--lookup", default=config.LOOKUP_COLLECTION)
    parser.add_argument("--target", default=config.TARGET_COLLECTION)
    parser.add_argument(
        "--batch-size",
        type=config.validate_batch_size,
        default=config.BATCH_SIZE,
        help="Documentos por insert_many (default: MIGRATION_BATCH_SIZE o 1000)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """
    Función principal que coordina el flujo completo de migración.

    Secuencia:
    1. Mostrar banner
    2. Validar configuración
    3. Conectar a MongoDB
    4. Ejecutar migración
    5. Cerrar conexión limpiamente

    Exit Codes:
        0: Éxito
        1: Error de configuración, conexión o migración
    """
    args = parse_args(argv)

    print("=" * 70)
    print("🚀 MIGRACIÓN MONGODB: acct → acctTarget")
    print("=" * 70)

    try:
        uri = config.get_mongo_uri(args.uri)
        batch_size = config.validate_batch_size(args.batch_size)
        migrator = AcctMigrator(args.source, args.lookup, args.target)
    except (KeyError, ValueError) as e:
        print(f"❌ Error de configuración: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"📍 Origen: {migrator.source}")
    print(f"📍 Lookup: {migrator.lookup}")
    print(f"📍 Destino: {migrator.target}")

    mongo_client, mongo_db = connect_to_mongo(uri, args.database)

    try:
        missing = validate_source_collections(mongo_db, migrator)
        if missing:
            print(
                f"\n⚠️  ADVERTENCIA: Faltan colecciones: {', '.join(missing)}"
            )
            print("   La migración continúa pero no insertará documentos")

        migrate_collection(mongo_db, migrator, batch_size)

        print("\n" + "=" * 70)
        print("✅ PROCESO COMPLETADO EXITOSAMENTE")
        print("=" * 70)

    except BatchWriteError as e:
        print(f"\n❌ Error durante la inserción: {e}", file=sys.stderr)
        print(
            f"   Documentos perdidos (batch fallido): {len(e.lost_records):,}",
            file=sys.stderr,
        )
        traceback.print_exc()
        sys.exit(1)

    except Exception as e:
        print(f"\n❌ Error durante la migración: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    finally:
        print("\n🔒 Cerrando conexión...")
        mongo_client.close()
        print("✅ Conexión cerrada correctamente")


if __name__ == "__main__":
    main()
