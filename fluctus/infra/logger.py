# fluctus/infra/logger.py
"""
Sistema de logging das operações do Fluctus.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: precificação de produtos e kits, viagens de compras,
fundo de logística e gravação/backup da raiz de dados.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = False
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = False

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove handlers anteriores (reimportação do módulo em testes)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    # delay=True: o arquivo só é criado no primeiro registro
    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

# Diretório base para logs (na pasta do pacote)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = BASE_DIR / "logs"

# Loggers específicos para cada operação
transaction_logger = setup_logger(
    'fluctus.transactions',
    str(LOGS_DIR / 'transactions.log')
)

pricing_logger = setup_logger(
    'fluctus.precificacao',
    str(LOGS_DIR / 'precificacao.log')
)

purchase_logger = setup_logger(
    'fluctus.compras',
    str(LOGS_DIR / 'compras.log')
)

storage_logger = setup_logger(
    'fluctus.storage',
    str(LOGS_DIR / 'storage.log')
)

system_logger = setup_logger(
    'fluctus.system',
    str(LOGS_DIR / 'system.log')
)

def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (salvar_produto, deposito, etc.)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_precificacao(action: str, entity: str, entity_id: Any, **kwargs) -> None:
    """
    Log específico para cálculos de custo e preço.

    Args:
        action: Ação realizada (save, recalculate, delete)
        entity: 'product' ou 'kit'
        entity_id: Id do registro
        **kwargs: Valores calculados
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "action": action,
        "entity": entity,
        "id": entity_id,
        **kwargs
    }
    pricing_logger.info(f"PRICING_{action.upper()}: {log_data}")

def log_compra(action: str, trip_id: Any, **kwargs) -> None:
    """
    Log específico para viagens de compras e fundo de logística.

    Args:
        action: Ação realizada (add_logistics, add_item, confirm, ...)
        trip_id: Id da viagem (ou None para operações do fundo)
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "action": action,
        "trip_id": trip_id,
        **kwargs
    }
    purchase_logger.info(f"COMPRA_{action.upper()}: {log_data}")

def log_storage_operation(operation: str, path: str, **kwargs) -> None:
    """
    Log específico para leitura/gravação da raiz de dados.

    Args:
        operation: LOAD, SAVE, MIGRATE, BACKUP, RESTORE
        path: Caminho do arquivo
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "operation": operation,
        "path": path,
        **kwargs
    }
    storage_logger.info(f"STORAGE_{operation}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação/exportação).

    Args:
        operation: Tipo de operação (import, export)
        file_path: Caminho do arquivo
        rows_processed: Número de linhas processadas
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, precificacao, compras, storage, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return None

    log_files = {
        "transactions": LOGS_DIR / "transactions.log",
        "precificacao": LOGS_DIR / "precificacao.log",
        "compras": LOGS_DIR / "compras.log",
        "storage": LOGS_DIR / "storage.log",
        "system": LOGS_DIR / "system.log"
    }

    log_file = log_files.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            recent_lines = all_lines[-lines:] if len(all_lines) > lines else all_lines
            return ''.join(recent_lines)
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"
