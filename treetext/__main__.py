"""Module entrypoint for ``python -m treetext``.

All argument parsing and pipeline setup happen in ``treetext.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
