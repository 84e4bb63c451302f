# fluctus/config.py
"""
Configurações globais e valores padrão do Fluctus.
"""

import os
from dataclasses import dataclass


# Caminho padrão do arquivo JSON com a raiz de dados
DATA_PATH = os.path.join(os.getcwd(), "fluctus.json")


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    estimated_sales: float = 100.0  # Vendas mensais estimadas (unidades) para o rateio
    backup_prefix: str = "fluctus-backup"
    decimal_places: int = 2
    birthday_window: int = 5  # Quantos aniversariantes mostrar no painel


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
