# ContentSync Data Store
# In-memory documents grouped in one namespace per source

import copy
from collections.abc import Callable, Iterator, Mapping
from typing import Any, Optional

from jsonpath_ng.ext import parse as parse_jsonpath
from jsonpath_ng.jsonpath import DatumInContext, Fields, Index

from contentsync.result import Err, Ok, Result


def _set_match(root: Any, match: DatumInContext, value: Any) -> Any:
    """Write ``value`` at the location of a jsonpath match, returning the (possibly new) root."""
    parent = match.context.value if match.context is not None else None
    path = match.path
    if parent is None:
        return value
    if isinstance(path, Index):
        parent[path.index] = value
    elif isinstance(path, Fields) and len(path.fields) == 1:
        parent[path.fields[0]] = value
    else:
        match.full_path.update(root, value)
    return root


class Document:
    """A named unit of structured content owned by a namespace."""

    def __init__(self, doc_id: str, data: Any, namespace: Optional[str] = None):
        self._id = doc_id
        self._data = data
        self._namespace = namespace

    @property
    def id(self) -> str:
        return self._id

    @property
    def namespace(self) -> Optional[str]:
        return self._namespace

    @property
    def data(self) -> Any:
        """A detached copy of the document data."""
        return copy.deepcopy(self._data)

    def raw(self) -> Any:
        """The underlying data, for serialization. Do not mutate."""
        return self._data

    def update(self, data: Any) -> None:
        """Replace the document data. Called by the owning namespace."""
        self._data = data

    def apply(self, path: str, fn: Callable[[Any], Any]) -> Result[int, str]:
        """
        Apply ``fn`` to every node matched by a JSONPath expression.

        The transform runs on a copy and only replaces the document data if
        every matched node was transformed successfully.

        Args:
            path: JSONPath expression, e.g. ``$..body``.
            fn: Pure function mapping a node value to its new value.

        Returns:
            Ok with the number of matched nodes, or Err with a message.
        """
        try:
            expr = parse_jsonpath(path)
        except Exception as e:
            return Err(f"Invalid path '{path}': {e}")

        working = copy.deepcopy(self._data)
        try:
            matches = expr.find(working)
            for match in matches:
                working = _set_match(working, match, fn(match.value))
        except Exception as e:
            return Err(f"Transform failed for '{self._id}' at '{path}': {e}")

        self._data = working
        return Ok(len(matches))

    def __repr__(self) -> str:
        return f"Document(id={self._id!r}, namespace={self._namespace!r})"


class Namespace:
    """The documents of one source, keyed by document id."""

    def __init__(self, namespace_id: str):
        self._id = namespace_id
        self._documents: dict[str, Document] = {}

    @property
    def id(self) -> str:
        return self._id

    def insert(self, doc_id: str, data: Any) -> Result[Document, str]:
        """Insert a new document. Fails if the id already exists."""
        if doc_id in self._documents:
            return Err(f"Document '{doc_id}' already exists in namespace '{self._id}'. Did you mean to use update()?")
        document = Document(doc_id, data, namespace=self._id)
        self._documents[doc_id] = document
        return Ok(document)

    def get(self, doc_id: str) -> Result[Document, str]:
        """Get a document. Fails if it doesn't exist."""
        if doc_id not in self._documents:
            return Err(f"Document '{doc_id}' not found in namespace '{self._id}'")
        return Ok(self._documents[doc_id])

    def update(self, doc_id: str, data: Any) -> Result[Document, str]:
        """Replace a document's data, inserting it if missing."""
        document = self._documents.get(doc_id)
        if document is None:
            return self.insert(doc_id, data)
        document.update(data)
        return Ok(document)

    def delete(self, doc_id: str) -> Result[bool, str]:
        """Delete a document. Returns Ok(False) if it didn't exist."""
        return Ok(self._documents.pop(doc_id, None) is not None)

    def documents(self) -> Iterator[Document]:
        """Iterate over all documents."""
        yield from list(self._documents.values())

    def keys(self) -> list[str]:
        return list(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)


class DataStore:
    """All namespaces of one sync run."""

    def __init__(self) -> None:
        self._namespaces: dict[str, Namespace] = {}
        self._generation = 0

    def create_namespace(self, namespace_id: str) -> Result[Namespace, str]:
        """Create an empty namespace. Fails if it already exists."""
        if namespace_id in self._namespaces:
            return Err(f"Namespace '{namespace_id}' already exists")
        namespace = Namespace(namespace_id)
        self._namespaces[namespace_id] = namespace
        self._generation += 1
        return Ok(namespace)

    def create_namespace_from_map(self, namespace_id: str, documents: Mapping[str, Any]) -> Result[Namespace, str]:
        """
        Create a namespace and insert every entry of ``documents``.

        Stops at the first failed insert. The namespace and the documents
        inserted before the failure are kept.
        """
        result = self.create_namespace(namespace_id)
        if result.is_err:
            return result
        namespace = result.value
        for doc_id, data in documents.items():
            inserted = namespace.insert(doc_id, data)
            if inserted.is_err:
                return Err(inserted.error)
        return Ok(namespace)

    def namespace(self, namespace_id: str) -> Result[Namespace, str]:
        """Get a namespace. Fails if it doesn't exist."""
        if namespace_id not in self._namespaces:
            return Err(f"Namespace '{namespace_id}' not found")
        return Ok(self._namespaces[namespace_id])

    def has_namespace(self, namespace_id: str) -> bool:
        return namespace_id in self._namespaces

    def delete_namespace(self, namespace_id: str) -> Result[bool, str]:
        """Delete a namespace and its documents. Idempotent."""
        if self._namespaces.pop(namespace_id, None) is None:
            return Ok(False)
        self._generation += 1
        return Ok(True)

    def insert(self, namespace_id: str, doc_id: str, data: Any) -> Result[Document, str]:
        return self.namespace(namespace_id).and_then(lambda ns: ns.insert(doc_id, data))

    def get(self, namespace_id: str, doc_id: str) -> Result[Document, str]:
        return self.namespace(namespace_id).and_then(lambda ns: ns.get(doc_id))

    def update(self, namespace_id: str, doc_id: str, data: Any) -> Result[Document, str]:
        return self.namespace(namespace_id).and_then(lambda ns: ns.update(doc_id, data))

    def delete(self, namespace_id: str, doc_id: str) -> Result[bool, str]:
        """Delete a document. Missing namespaces and documents are a no-op."""
        if namespace_id not in self._namespaces:
            return Ok(False)
        return self._namespaces[namespace_id].delete(doc_id)

    def namespaces(self) -> Iterator[Namespace]:
        """Iterate over namespaces. The namespace set must not change meanwhile."""
        generation = self._generation
        for namespace in list(self._namespaces.values()):
            if generation != self._generation:
                raise RuntimeError("Data store namespaces changed during iteration")
            yield namespace

    def documents(self, namespace_id: str) -> Result[Iterator[Document], str]:
        """Lazily iterate over the documents of one namespace."""
        return self.namespace(namespace_id).map(lambda ns: ns.documents())

    def all_documents(self) -> Iterator[Document]:
        """Lazily iterate over the documents of every namespace."""
        for namespace in self.namespaces():
            yield from namespace.documents()

    def __len__(self) -> int:
        return len(self._namespaces)
