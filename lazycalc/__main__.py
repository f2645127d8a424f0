import sys

from lazycalc.main import main

sys.exit(main())
