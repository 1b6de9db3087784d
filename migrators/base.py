"""
Módulo base para migradores MongoDB → MongoDB por aggregate.

Define la interfaz común (contrato) que los migradores específicos deben
implementar. Esto permite que mongomigra.py funcione con cualquier pipeline
sin conocer sus detalles internos.

Patrón de diseño: Strategy Pattern
- mongomigra.py = Contexto (orquestador + batching)
- BaseMigrator = Estrategia abstracta
- AcctMigrator = Estrategia concreta (acct → acctTarget)

Flujo de uso:
1. mongomigra.py instancia el migrador con las tres colecciones
2. Llama a extract_identifiers() para obtener los valores distintos
3. Por cada identificador llama a extract_data() (aggregate del pipeline)
4. Acumula en batches
5. Llama a insert_batch() para bulk insert en la colección destino

Ejemplo de implementación:
    class MiMigrador(BaseMigrator):
        identifier_field = 'CustomerID'

        def build_pipeline(self, identifier):
            return [{'$match': {'CustomerID': identifier}}, ...]
"""

from abc import ABC, abstractmethod

import config


class BaseMigrator(ABC):
    """
    Clase abstracta que define la interfaz para migradores por aggregate.

    Attributes:
        source (str): Colección origen (distinct + aggregate)
        lookup (str): Colección unida con $lookup
        target (str): Colección destino (insert_many)
    """

    identifier_field = config.IDENTIFIER_FIELD

    def __init__(self, source: str, lookup: str, target: str):
        config.validate_collection_names(
            {"source": source, "lookup": lookup, "target": target}
        )
        self.source = source
        self.lookup = lookup
        self.target = target

    @abstractmethod
    def build_pipeline(self, identifier) -> list:
        """
        Construye el pipeline de aggregate para un identificador.

        El pipeline es descripción de la consulta, no lógica: se evalúa
        en el servidor. Solo depende del identificador y de los nombres
        de colección del migrador.

        Args:
            identifier: Valor de identifier_field (ej: 'xxxx2345')

        Returns:
            list: Stages de aggregate, ej:
                [
                    {'$match': {...}},
                    {'$lookup': {...}},
                    ...
                ]
        """
        pass

    def extract_identifiers(self, db):
        """
        Valores distintos de identifier_field en la colección origen.

        Args:
            db: Database de pymongo

        Returns:
            list: Identificadores deduplicados (orden definido por el servidor)
        """
        return db[self.source].distinct(self.identifier_field)

    def extract_data(self, db, identifier):
        """
        Ejecuta el pipeline para un identificador.

        Returns:
            Iterable de documentos reformateados (CommandCursor en pymongo)
        """
        return db[self.source].aggregate(
            self.build_pipeline(identifier), allowDiskUse=config.ALLOW_DISK_USE
        )

    def insert_batch(self, db, records: list):
        """Inserta un batch completo en la colección destino."""
        db[self.target].insert_many(records)
