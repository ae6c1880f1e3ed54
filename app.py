"""
Entrypoint da aplicação.

Uso:
  python app.py init --help
  python app.py --db estoque.db init
  python app.py produto import produtos.csv --setor-pendentes Outros
  python app.py estoque mov P001 2,5 --setor Açougue
  python app.py rel csv --setor Açougue --out relatorio.csv
"""

from gerenciador_estoque.adapters.cli import main

if __name__ == "__main__":
    main()
