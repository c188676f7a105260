import sys

from stampfix.fix_pass import main

sys.exit(main())
