"""
Acumulador de batches para inserción masiva.

Desacopla la producción de documentos (uno a uno, desde un cursor de
aggregate) de la escritura (insert_many amortizado sobre muchos documentos).

Protocolo:
    acc = BatchAccumulator(write_batch, batch_size=1000)

    for doc in cursor:
        acc.append(doc)
        acc.maybe_flush()   # Inserta si el buffer llegó a batch_size

    acc.final_flush()       # Inserta el resto (si hay)

El chequeo es por documento, no por identificador: un batch puede mezclar
documentos de varios UserID, y un solo UserID puede disparar varios flush.
"""

import config


class BatchWriteError(Exception):
    """
    Falla de un insert_many durante un flush.

    Attributes:
        lost_records (list): Documentos que estaban en el buffer al fallar
        cause (Exception): Excepción original del sink
    """

    def __init__(self, lost_records, cause):
        self.lost_records = lost_records
        self.cause = cause
        super().__init__(
            f"Fallo al insertar batch de {len(lost_records)} documentos: {cause}"
        )


class BatchAccumulator:
    """
    Buffer de documentos con flush por umbral.

    Attributes:
        batch_size (int): Umbral de flush
        flush_count (int): Cantidad de llamadas a write_batch realizadas
        total_written (int): Documentos entregados al sink
    """

    def __init__(self, write_batch, batch_size=None):
        """
        Args:
            write_batch: Callable que recibe una lista de documentos y hace
                         un único insert masivo (ej: collection.insert_many)
            batch_size: Umbral de flush (default: config.BATCH_SIZE)
        """
        if batch_size is None:
            batch_size = config.BATCH_SIZE
        self.batch_size = config.validate_batch_size(batch_size)
        self.write_batch = write_batch
        self.records = []
        self.flush_count = 0
        self.total_written = 0

    def __len__(self):
        return len(self.records)

    def append(self, record):
        self.records.append(record)

    def maybe_flush(self) -> int:
        """Inserta y vacía el buffer solo si alcanzó batch_size."""
        if len(self.records) >= self.batch_size:
            return self._flush()
        return 0

    def final_flush(self) -> int:
        """Inserta lo que quede en el buffer. Sin documentos no llama al sink."""
        if not self.records:
            return 0
        return self._flush()

    def _flush(self) -> int:
        # Copia: el sink puede retener la lista (o insert_many mutarla)
        batch = list(self.records)

        try:
            self.write_batch(batch)
        except Exception as e:
            self.records = []
            raise BatchWriteError(batch, e) from e

        self.records = []
        self.flush_count += 1
        self.total_written += len(batch)
        return len(batch)
