import sys

from appmenu.app import main

sys.exit(main())
