# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --data fluctus.json
  python app.py seed
  python app.py produtos
  python app.py produto 1
  python app.py fundo deposito 200 --desc "Reforço"
  python app.py importar materiais.xlsx --tipo material
"""

from fluctus.adapters.cli import main

if __name__ == "__main__":
    main()
