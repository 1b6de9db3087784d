"""
Migradores MongoDB → MongoDB basados en aggregate por identificador.

Cada migrador implementa la interfaz BaseMigrator y es instanciado por
mongomigra.py con los nombres de colección de config.py (o de la CLI).

Estructura:
    base.py: Clase abstracta BaseMigrator
    acct.py: Migrador acct + acctMaster → acctTarget

Interfaz requerida (ver BaseMigrator):
    - build_pipeline(identifier)

Provista por la base:
    - extract_identifiers(db)
    - extract_data(db, identifier)
    - insert_batch(db, records)
"""
