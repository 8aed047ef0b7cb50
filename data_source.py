import os
import re
import shutil
import tempfile
import threading
from dataclasses import dataclass, field
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import pandas as pd

from logging_setup import get_logger

logger = get_logger("data_source")

SUPPORTED_EXTENSIONS = {".parquet", ".csv"}
PARQUET_MAGIC_BYTES = 4
DOWNLOAD_CHUNK_BYTES = 1024 * 1024

_HF_URL = re.compile(r"^hf://(datasets|models)/([^@/]+)/([^@/]+)(?:@([^/]+))?/(.+)$")


class DataSourceError(Exception):
    """Decode, IO or lookup failure reported by a data source."""


# ---------- metadata ----------
@dataclass(frozen=True)
class SchemaColumn:
    name: str
    type: str


@dataclass(frozen=True)
class ByteRange:
    start: int
    byte_count: int

    @property
    def end(self) -> int:
        return self.start + self.byte_count


@dataclass(frozen=True)
class ColumnChunkLayout:
    name: str
    path: tuple
    byte_size: int
    total_range: ByteRange
    data_range: ByteRange
    dictionary_range: ByteRange | None = None
    compression: str | None = None


@dataclass(frozen=True)
class RowGroupLayout:
    index: int
    byte_size: int
    chunks: tuple
    row_count: int | None = None


@dataclass(frozen=True)
class StorageLayout:
    magic: ByteRange
    row_groups: tuple


@dataclass(frozen=True)
class ReadOptions:
    columns: tuple = ()
    max_rows: int | None = None
    batch_size: int = 1024


@dataclass(frozen=True)
class DatasetMetadata:
    columns: tuple = ()
    key_value_metadata: dict = field(default_factory=dict)
    created_by: str | None = None
    row_count: int | None = None
    layout: StorageLayout | None = None

    @property
    def has_layout(self) -> bool:
        return self.layout is not None and len(self.layout.row_groups) > 0


# ---------- sources ----------
class DataSource:
    """Row/metadata provider consumed by the row window cache."""

    title = ""

    def fetch_rows(self, columns, row_offset: int, row_count: int) -> pd.DataFrame:
        raise NotImplementedError

    def fetch_metadata(self) -> DatasetMetadata:
        raise NotImplementedError

    def close(self) -> None:
        pass


def _check_columns(requested, available):
    missing = [name for name in requested if name not in available]
    if missing:
        raise DataSourceError(f"unknown columns: {', '.join(missing)}")


class FrameSource(DataSource):
    """In-memory source over a DataFrame (CSV files, small result sets)."""

    def __init__(self, frame: pd.DataFrame, title: str = "", report_row_count: bool = True):
        frame = frame.copy()
        frame.columns = [str(c) for c in frame.columns]
        self.frame = frame
        self.title = title
        self.report_row_count = report_row_count
        self.closed = False

    def fetch_rows(self, columns, row_offset: int, row_count: int) -> pd.DataFrame:
        if self.closed:
            raise DataSourceError("source is closed")
        frame = self.frame
        if columns:
            _check_columns(columns, frame.columns)
            frame = frame[list(columns)]
        start = max(0, int(row_offset))
        stop = start + max(0, int(row_count))
        return frame.iloc[start:stop].reset_index(drop=True)

    def fetch_metadata(self) -> DatasetMetadata:
        columns = tuple(
            SchemaColumn(str(name), str(dtype)) for name, dtype in self.frame.dtypes.items()
        )
        return DatasetMetadata(
            columns=columns,
            row_count=len(self.frame) if self.report_row_count else None,
        )

    def close(self) -> None:
        self.closed = True


class ParquetSource(DataSource):
    def __init__(self, path: str, title: str | None = None, batch_size: int = 1024, cleanup_path: str | None = None):
        backend = get_backend()
        self.path = path
        self.title = title or path
        self.batch_size = batch_size
        self._cleanup_path = cleanup_path
        # pyarrow readers are not safe to share across threads
        self._lock = threading.Lock()
        try:
            self._file = backend.pq.ParquetFile(path)
        except (OSError, backend.pa.ArrowException) as exc:
            self._remove_download()
            raise DataSourceError(f"cannot open {self.title}: {exc}") from exc
        self._row_group_starts = self._compute_row_group_starts()
        backend.register(self)

    def _compute_row_group_starts(self):
        starts = []
        cursor = 0
        meta = self._file.metadata
        for idx in range(meta.num_row_groups):
            starts.append(cursor)
            cursor += meta.row_group(idx).num_rows
        return starts

    def _row_groups_for(self, start: int, stop: int) -> list[int]:
        meta = self._file.metadata
        selected = []
        for idx, rg_start in enumerate(self._row_group_starts):
            rg_stop = rg_start + meta.row_group(idx).num_rows
            if rg_stop > start and rg_start < stop:
                selected.append(idx)
        return selected

    def fetch_rows(self, columns, row_offset: int, row_count: int) -> pd.DataFrame:
        backend = get_backend()
        start = max(0, int(row_offset))
        stop = start + max(0, int(row_count))
        names = list(columns) if columns else None
        if names:
            _check_columns(names, self._file.schema_arrow.names)

        with self._lock:
            groups = self._row_groups_for(start, stop)
            try:
                batches = []
                if groups:
                    cursor = self._row_group_starts[groups[0]]
                    for batch in self._file.iter_batches(
                        batch_size=self.batch_size,
                        row_groups=groups,
                        columns=names,
                        use_threads=False,
                    ):
                        batch_end = cursor + batch.num_rows
                        if batch_end > start:
                            lo = max(start, cursor)
                            batches.append(batch.slice(lo - cursor, stop - lo))
                        cursor = batch_end
                        if cursor >= stop:
                            break
                if batches:
                    table = backend.pa.Table.from_batches(batches)
                else:
                    table = self._file.schema_arrow.empty_table()
                    if names:
                        table = table.select(names)
            except (OSError, backend.pa.ArrowException) as exc:
                raise DataSourceError(str(exc)) from exc

        # keep nested values as python objects; timestamps stay pandas Timestamps
        return table.to_pandas(maps_as_pydicts="strict", integer_object_nulls=True)

    def fetch_metadata(self) -> DatasetMetadata:
        with self._lock:
            meta = self._file.metadata
            schema = self._file.schema_arrow
            columns = tuple(SchemaColumn(f.name, str(f.type)) for f in schema)
            key_values = {}
            for key, value in (meta.metadata or {}).items():
                key_values[_decode(key)] = _decode(value)
            layout = self._build_layout(meta)
            return DatasetMetadata(
                columns=columns,
                key_value_metadata=key_values,
                created_by=meta.created_by or None,
                row_count=int(meta.num_rows),
                layout=layout,
            )

    def _build_layout(self, meta) -> StorageLayout:
        row_groups = []
        for rg_idx in range(meta.num_row_groups):
            rg = meta.row_group(rg_idx)
            chunks = []
            for col_idx in range(rg.num_columns):
                chunks.append(_chunk_layout(rg.column(col_idx)))
            row_groups.append(
                RowGroupLayout(
                    index=rg_idx,
                    byte_size=sum(chunk.byte_size for chunk in chunks),
                    chunks=tuple(chunks),
                    row_count=int(rg.num_rows),
                )
            )
        return StorageLayout(
            magic=ByteRange(0, PARQUET_MAGIC_BYTES),
            row_groups=tuple(row_groups),
        )

    def _remove_download(self):
        if self._cleanup_path and os.path.exists(self._cleanup_path):
            try:
                os.remove(self._cleanup_path)
            except OSError:
                logger.warning("could not remove %s", self._cleanup_path)
        self._cleanup_path = None

    def close(self) -> None:
        with self._lock:
            try:
                self._file.close()
            except (OSError, AttributeError):
                pass
            self._remove_download()
        get_backend().unregister(self)


def _decode(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _chunk_layout(column) -> ColumnChunkLayout:
    byte_size = int(column.total_compressed_size)
    data_offset = int(column.data_page_offset)
    dict_offset = column.dictionary_page_offset if column.has_dictionary_page else None
    if dict_offset is not None and 0 < dict_offset < data_offset:
        start = int(dict_offset)
        dictionary_range = ByteRange(start, data_offset - start)
    else:
        start = data_offset
        dictionary_range = None
    end = start + byte_size
    return ColumnChunkLayout(
        name=column.path_in_schema,
        path=tuple(column.path_in_schema.split(".")),
        byte_size=byte_size,
        total_range=ByteRange(start, byte_size),
        data_range=ByteRange(data_offset, max(0, end - data_offset)),
        dictionary_range=dictionary_range,
        compression=str(column.compression) if column.compression else None,
    )


# ---------- backend ----------
class ArrowBackend:
    """Process-wide pyarrow handle: imported once, torn down at session end."""

    def __init__(self):
        self.pa = None
        self.pq = None
        self._sources: list[DataSource] = []
        self._lock = threading.Lock()
        self.initialized = False

    def initialize(self, io_threads: int = 4):
        if self.initialized:
            return
        try:
            import pyarrow
            import pyarrow.parquet
        except ImportError as exc:
            raise DataSourceError(
                "Parquet support requires pyarrow. Install via: pip install pyarrow"
            ) from exc
        self.pa = pyarrow
        self.pq = pyarrow.parquet
        pyarrow.set_io_thread_count(max(1, io_threads))
        self.initialized = True
        logger.debug("pyarrow %s ready", pyarrow.__version__)

    def register(self, source: DataSource):
        with self._lock:
            self._sources.append(source)

    def unregister(self, source: DataSource):
        with self._lock:
            if source in self._sources:
                self._sources.remove(source)

    @property
    def open_sources(self) -> list[DataSource]:
        with self._lock:
            return list(self._sources)

    def shutdown(self):
        for source in self.open_sources:
            try:
                source.close()
            except DataSourceError as exc:
                logger.warning("close failed: %s", exc)
        with self._lock:
            self._sources.clear()


_BACKEND: ArrowBackend | None = None
_BACKEND_LOCK = threading.Lock()


def get_backend() -> ArrowBackend:
    global _BACKEND
    with _BACKEND_LOCK:
        if _BACKEND is None:
            _BACKEND = ArrowBackend()
        _BACKEND.initialize()
        return _BACKEND


def shutdown_backend():
    global _BACKEND
    with _BACKEND_LOCK:
        backend = _BACKEND
        _BACKEND = None
    if backend is not None:
        backend.shutdown()


# ---------- opening ----------
def resolve_dataset_url(reference: str) -> str | None:
    if reference.startswith("hf://"):
        match = _HF_URL.match(reference)
        if not match:
            raise DataSourceError(f"Invalid hf:// URL: {reference}")
        kind, user, repo, branch, file_path = match.groups()
        branch = branch or "main"
        return f"https://huggingface.co/{kind}/{user}/{repo}/resolve/{branch}/{file_path}"
    if reference.startswith("http://") or reference.startswith("https://"):
        return reference
    return None


def _extension(reference: str) -> str:
    path = reference.split("?", 1)[0]
    _, ext = os.path.splitext(path)
    return ext.lower()


def download_to_tempfile(url: str, suffix: str = ".parquet", timeout: float = 60.0) -> str:
    request = Request(url, headers={"User-Agent": "pqview"})
    fd, tmp_path = tempfile.mkstemp(prefix="pqview-", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as out, urlopen(request, timeout=timeout) as resp:
            shutil.copyfileobj(resp, out, DOWNLOAD_CHUNK_BYTES)
    except (URLError, HTTPError, TimeoutError, OSError) as exc:
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise DataSourceError(f"download failed: {url}: {exc}") from exc
    logger.info("downloaded %s to %s", url, tmp_path)
    return tmp_path


def open_source(reference: str, options: ReadOptions | None = None) -> DataSource:
    options = options or ReadOptions()
    batch_size = options.batch_size
    url = resolve_dataset_url(reference)
    ext = _extension(url or reference)
    if ext and ext not in SUPPORTED_EXTENSIONS:
        raise DataSourceError("Unsupported file type (use .parquet or .csv)")

    if ext == ".csv":
        try:
            frame = pd.read_csv(url or reference)
        except (OSError, ValueError) as exc:
            raise DataSourceError(f"cannot read {reference}: {exc}") from exc
        return FrameSource(frame, title=reference)

    if url is not None:
        local = download_to_tempfile(url)
        return ParquetSource(local, title=reference, batch_size=batch_size, cleanup_path=local)

    if not os.path.exists(reference):
        raise DataSourceError(f"no such file: {reference}")
    return ParquetSource(reference, batch_size=batch_size)
