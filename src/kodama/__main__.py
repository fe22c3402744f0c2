"""python -m kodama エントリポイント。"""

from kodama.cli import main

main()
