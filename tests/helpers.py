"""
Funciones helper compartidas para todos los tests.

Proporciona dobles en memoria de Database/Collection de pymongo con la
superficie que usa la migración (distinct, aggregate, insert_many,
list_collection_names, find().limit()), para poder validar el flujo
completo sin servidor MongoDB.
"""

import sys
import os

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pymongo.errors import PyMongoError

import config


class FakeCursor:
    """Cursor mínimo: iterable con limit()."""

    def __init__(self, docs):
        self.docs = list(docs)

    def limit(self, n):
        return FakeCursor(self.docs[:n])

    def __iter__(self):
        return iter(self.docs)


class FakeCollection:
    """
    Colección en memoria.

    Attributes:
        docs (list): Documentos almacenados (find/distinct/insert_many)
        aggregate_results (dict): identificador → lista de documentos que
                                  devuelve aggregate() para ese $match
        aggregate_calls (list): Identificadores consultados, en orden
        insert_calls (list): Lista de batches recibidos por insert_many
        fail_on_insert (int|None): Número de llamada (1-based) a insert_many que falla
        evaluate_pipelines (bool): Si es True, aggregate() ejecuta el pipeline
                                   sobre los docs con run_pipeline()
    """

    def __init__(self, name, docs=None):
        self.name = name
        self.docs = list(docs or [])
        self.aggregate_results = {}
        self.distinct_values = None
        self.aggregate_calls = []
        self.pipelines = []
        self.insert_calls = []
        self.fail_on_insert = None
        self.evaluate_pipelines = False
        self.database = None

    def distinct(self, key):
        if self.distinct_values is not None:
            return list(self.distinct_values)

        values = []
        for doc in self.docs:
            if key in doc and doc[key] not in values:
                values.append(doc[key])
        return values

    def aggregate(self, pipeline, allowDiskUse=False):
        self.pipelines.append((pipeline, allowDiskUse))
        identifier = pipeline[0]["$match"][config.IDENTIFIER_FIELD]
        self.aggregate_calls.append(identifier)
        if self.evaluate_pipelines:
            return iter(run_pipeline(self.database, self.name, pipeline))
        return iter(self.aggregate_results.get(identifier, []))

    def insert_many(self, records):
        if self.fail_on_insert == len(self.insert_calls) + 1:
            raise PyMongoError("insert_many simulado: falla de escritura")
        self.insert_calls.append(records)
        self.docs.extend(records)

    def find(self, *args, **kwargs):
        return FakeCursor(self.docs)


class FakeDatabase:
    """Database en memoria: colecciones creadas bajo demanda, como pymongo."""

    def __init__(self, name="demo"):
        self.name = name
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
            self.collections[name].database = self
        return self.collections[name]

    def list_collection_names(self):
        # Solo existen en el servidor las colecciones con datos
        return [name for name, coll in self.collections.items() if coll.docs]


def make_records(identifier, count):
    """Genera documentos reformateados de ejemplo para un identificador."""
    return [
        {"UserID": identifier, "AccountNumber": f"{identifier}-{i}", "seq": i}
        for i in range(count)
    ]


def make_acct_database(results, fail_on_insert=None):
    """
    Arma una base con las colecciones por defecto (acct, acctMaster) cargadas.

    Args:
        results: dict ordenado identificador → documentos que produce el pipeline.
                 El orden de las keys es el orden de distinct().
        fail_on_insert: Llamada a insert_many que debe fallar (1-based)

    Returns:
        FakeDatabase
    """
    db = FakeDatabase()

    source = db[config.SOURCE_COLLECTION]
    source.docs = [{"UserID": uid, "AccountNumber": "A"} for uid in results]
    source.distinct_values = list(results)
    source.aggregate_results = dict(results)

    db[config.LOOKUP_COLLECTION].docs = [{"AccountNumber": "A"}]
    db[config.TARGET_COLLECTION].fail_on_insert = fail_on_insert

    return db


def get_inserted_batches(db):
    """Batches recibidos por la colección destino por defecto."""
    return db[config.TARGET_COLLECTION].insert_calls


def run_test_functions(title, tests):
    """
    Ejecuta una lista de funciones test_* sin pytest y reporta resultados.

    Returns:
        int: Cantidad de tests fallidos
    """
    print("=" * 70)
    print(f"🧪 {title}")
    print("=" * 70)

    failed = 0

    for test_func in tests:
        try:
            test_func()
            print(f"   ✅ {test_func.__name__}")
        except AssertionError as e:
            print(f"\n❌ FALLO: {test_func.__name__}")
            print(f"   {e}")
            failed += 1
        except Exception as e:
            print(f"\n❌ ERROR: {test_func.__name__}")
            print(f"   {type(e).__name__}: {e}")
            failed += 1

    print("\n" + "=" * 70)

    if failed == 0:
        print("✅ TODOS LOS TESTS PASARON")
    else:
        print(f"❌ {failed} TEST(S) FALLARON")
    print("=" * 70)

    return failed


def collect_test_functions(namespace):
    """Funciones test_* de un módulo, en orden de definición."""
    return [
        value
        for name, value in namespace.items()
        if name.startswith("test_") and callable(value)
    ]


# =============================================================================
# EVALUADOR DE PIPELINE EN MEMORIA
# Cubre solo los stages y operadores que usan los migradores:
# $match (igualdad), $lookup, $unwind, $group ($push, $first),
# $project (0/1, rutas "$a.b", $substrBytes)
# =============================================================================

MISSING = object()


def resolve_path(doc, path):
    """Valor de una ruta con puntos ("a.b.c"); MISSING si no existe."""
    value = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return MISSING
        value = value[part]
    return value


def evaluate_expression(doc, expr):
    if isinstance(expr, str) and expr.startswith("$"):
        return resolve_path(doc, expr[1:])

    if isinstance(expr, dict) and "$substrBytes" in expr:
        source, start, length = expr["$substrBytes"]
        value = evaluate_expression(doc, source)
        if value is MISSING or value is None:
            return ""
        return str(value).encode("utf-8")[start : start + length].decode("utf-8")

    if isinstance(expr, dict):
        return {key: evaluate_expression(doc, value) for key, value in expr.items()}

    return expr


def run_pipeline(db, collection_name, pipeline):
    """
    Ejecuta un pipeline de aggregate sobre los docs de una FakeCollection.

    Returns:
        list: Documentos resultantes
    """
    docs = [dict(doc) for doc in db[collection_name].docs]

    for stage in pipeline:
        (op, spec), = stage.items()

        if op == "$match":
            docs = [
                doc
                for doc in docs
                if all(resolve_path(doc, k) == v for k, v in spec.items())
            ]

        elif op == "$lookup":
            foreign = db[spec["from"]].docs
            for doc in docs:
                local = resolve_path(doc, spec["localField"])
                doc[spec["as"]] = [
                    dict(other)
                    for other in foreign
                    if resolve_path(other, spec["foreignField"]) == local
                ]

        elif op == "$unwind":
            field = spec[1:]
            unwound = []
            for doc in docs:
                for item in resolve_path(doc, field) or []:
                    unwound.append(dict(doc, **{field: item}))
            docs = unwound

        elif op == "$group":
            groups = {}
            for doc in docs:
                key = evaluate_expression(doc, spec["_id"])
                group = groups.setdefault(repr(key), {"_id": key})
                for name, accumulator in spec.items():
                    if name == "_id":
                        continue
                    (acc_op, acc_expr), = accumulator.items()
                    value = evaluate_expression(doc, acc_expr)
                    if acc_op == "$push":
                        group.setdefault(name, [])
                        if value is not MISSING:
                            group[name].append(value)
                    elif acc_op == "$first" and name not in group:
                        group[name] = None if value is MISSING else value
            docs = list(groups.values())

        elif op == "$project":
            projected = []
            for doc in docs:
                out = {}
                if spec.get("_id", 1) and "_id" in doc:
                    out["_id"] = doc["_id"]
                for name, expr in spec.items():
                    if name == "_id":
                        continue
                    value = doc.get(name, MISSING) if expr == 1 else evaluate_expression(doc, expr)
                    if value is not MISSING:
                        out[name] = value
                projected.append(out)
            docs = projected

        else:
            raise ValueError(f"Stage no soportado: {op}")

    return docs
