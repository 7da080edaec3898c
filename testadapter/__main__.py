import sys

from testadapter.main import main

sys.exit(main())
