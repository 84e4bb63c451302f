# fluctus/infra/storage.py
"""
Armazenamento da raiz de dados em um arquivo JSON, backup e restauração.

- ``DataStore`` é o objeto de estado injetado nos casos de uso.
- ``DataStore.transaction()`` entrega uma cópia de trabalho; ao sair sem
  erro a cópia substitui o estado e é gravada (em caso de exceção o
  estado em memória fica intacto).
- A gravação é um efeito colateral de melhor esforço: falha de E/S é
  registrada em log e não chega a quem chamou.
"""

from __future__ import annotations

import copy
import json
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from fluctus.config import DATA_PATH, DEFAULTS
from fluctus.infra.logger import log_storage_operation, storage_logger
from fluctus.infra.migrations import empty_data, migrate_data


class BackupInvalidoError(ValueError):
    """Arquivo de backup ilegível ou fora do formato da raiz de dados."""


def _dumps(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


class DataStore:
    def __init__(self, path: Optional[Union[str, Path]] = DATA_PATH, data: Optional[Dict[str, Any]] = None):
        # path=None mantém tudo em memória (útil em testes)
        self.path = Path(path) if path is not None else None
        self.data: Dict[str, Any] = migrate_data(data) if data is not None else empty_data()

    @classmethod
    def open(cls, path: Union[str, Path] = DATA_PATH) -> "DataStore":
        """Carrega o arquivo (migrando sempre); arquivo ausente → raiz vazia."""
        p = Path(path)
        if not p.exists():
            log_storage_operation("LOAD", str(p), created=True)
            return cls(p)
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BackupInvalidoError(f"arquivo de dados inválido: {p}: {e}") from e
        log_storage_operation("LOAD", str(p), version=raw.get("schemaVersion") if isinstance(raw, dict) else None)
        return cls(p, raw)

    def save(self) -> bool:
        """Grava a raiz de dados. Retorna False (e registra) se a E/S falhar."""
        if self.path is None:
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(_dumps(self.data), encoding="utf-8")
        except OSError as e:
            storage_logger.error(f"STORAGE_SAVE_FAILED: {self.path} - {e}")
            return False
        log_storage_operation("SAVE", str(self.path))
        return True

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        work = copy.deepcopy(self.data)
        yield work
        self.data = work
        self.save()

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)


# -------------------------
# Backup / restauração
# -------------------------

def backup_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"{DEFAULTS.backup_prefix}-{day.isoformat()}.json"


def write_backup(store: DataStore, directory: Union[str, Path] = ".", day: Optional[date] = None) -> Path:
    """Grava o backup completo (indentação de 2 espaços) e devolve o caminho."""
    target = Path(directory) / backup_filename(day)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(_dumps(store.data), encoding="utf-8")
    log_storage_operation("BACKUP", str(target))
    return target


def parse_backup(text: str) -> Dict[str, Any]:
    """Lê o JSON de um backup e devolve a raiz migrada."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise BackupInvalidoError(f"backup não é um JSON válido: {e}") from e
    if not isinstance(raw, dict):
        raise BackupInvalidoError("backup não contém um objeto JSON")
    return migrate_data(raw)


def restore_backup(store: DataStore, source: Union[str, Path]) -> DataStore:
    """Substitui a raiz de dados pelo conteúdo do backup.

    Se o arquivo não puder ser lido ou interpretado, ``BackupInvalidoError``
    é levantado e o estado em memória não é tocado.
    """
    try:
        text = Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise BackupInvalidoError(f"não foi possível ler {source}: {e}") from e
    data = parse_backup(text)
    store.data = data
    store.save()
    log_storage_operation("RESTORE", str(source))
    return store
