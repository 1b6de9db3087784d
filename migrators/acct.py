"""
Migrador de cuentas: acct + acctMaster → acctTarget.

Por cada UserID de la colección origen agrupa sus cuentas, junta los
RegRepNumber y OIP de todas las filas de la misma cuenta y copia los
datos de apertura/cierre desde la colección maestra.

Pipeline equivalente en shell (con las colecciones por defecto):

    db.acct.aggregate([
      {$match: {UserID: 'xxxx2345'}},
      {$lookup: {
        from: 'acctMaster',
        as: 'acctMaster',
        localField: 'AccountNumber',
        foreignField: 'AccountNumber'
      }},
      {$unwind: '$acctMaster'},
      {$group: {
        _id: {UserID: '$UserID', AccountNumber: '$AccountNumber'},
        RegRepNumbers: {$push: '$RegRepNumber'},
        OIPs: {$push: '$OIP'},
        master: {$first: '$acctMaster'}
      }},
      {$project: {
        _id: 0,
        UserID: '$_id.UserID',
        AccountNumber: '$_id.AccountNumber',
        RegRepNumbers: 1,
        OIPs: 1,
        DateOpen: '$master.DateOpen',
        DateClosed: '$master.DateClosed',
        TitleAddress1: '$master.TitleAddress1',
        PhoneNumber: {$substrBytes: ['$master.PhoneNumber', 0, 10]}
      }}
    ], {allowDiskUse: true})

DECISIONES DE DISEÑO:
- El documento maestro (alias del $lookup tras el $unwind) se conserva en el
  $group con $first como 'master'; el $project lee de ahí
- PhoneNumber se trunca a 10 bytes ($substrBytes)
"""

import config
from .base import BaseMigrator


# Campos copiados tal cual desde el documento maestro
MASTER_FIELDS = ["DateOpen", "DateClosed", "TitleAddress1"]

# Acumulador del $group con el documento maestro (mismo AccountNumber en todas las filas)
MASTER_ALIAS = "master"

PHONE_FIELD = "PhoneNumber"
PHONE_LENGTH = 10


class AcctMigrator(BaseMigrator):
    """
    Migrador específico para acct → acctTarget.
    """

    def __init__(
        self,
        source=config.SOURCE_COLLECTION,
        lookup=config.LOOKUP_COLLECTION,
        target=config.TARGET_COLLECTION,
    ):
        super().__init__(source, lookup, target)

    def build_pipeline(self, identifier):
        return [
            self._match(identifier),
            self._lookup(self.lookup, self.lookup, config.JOIN_FIELD, config.JOIN_FIELD),
            self._unwind(self.lookup),
            self._group(self.lookup),
            self._project(MASTER_ALIAS),
        ]

    # =========================================================================
    # MÉTODOS PRIVADOS: STAGES
    # =========================================================================

    def _match(self, identifier):
        """{$match: {UserID: identifier}}"""
        return {"$match": {self.identifier_field: identifier}}

    def _lookup(self, from_coll, as_field, local, foreign):
        """{$lookup: {from, as, localField, foreignField}}"""
        return {
            "$lookup": {
                "from": from_coll,
                "as": as_field,
                "localField": local,
                "foreignField": foreign,
            }
        }

    def _unwind(self, field):
        return {"$unwind": "$" + field}

    def _group(self, joined):
        """
        Una salida por (UserID, AccountNumber), acumulando RegRepNumber y OIP
        de todas las filas de esa cuenta.

        El documento maestro se conserva con $first en MASTER_ALIAS: después
        del $group solo existen _id y los acumuladores.

        Args:
            joined: Campo donde quedó el documento maestro tras el $unwind
        """
        return {
            "$group": {
                "_id": {
                    self.identifier_field: "$" + self.identifier_field,
                    config.JOIN_FIELD: "$" + config.JOIN_FIELD,
                },
                "RegRepNumbers": {"$push": "$RegRepNumber"},
                "OIPs": {"$push": "$OIP"},
                MASTER_ALIAS: {"$first": "$" + joined},
            }
        }

    def _project(self, joined):
        """
        Forma final del documento destino.

        Args:
            joined: Acumulador del $group que conserva el documento maestro
        """
        fields = {
            "_id": 0,
            self.identifier_field: "$_id." + self.identifier_field,
            config.JOIN_FIELD: "$_id." + config.JOIN_FIELD,
            "RegRepNumbers": 1,
            "OIPs": 1,
        }

        for field in MASTER_FIELDS:
            fields[field] = f"${joined}.{field}"

        fields[PHONE_FIELD] = {
            "$substrBytes": [f"${joined}.{PHONE_FIELD}", 0, PHONE_LENGTH]
        }

        return {"$project": fields}
