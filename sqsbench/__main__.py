import sys

from sqsbench.main import main

sys.exit(main(sys.argv[1:]))
