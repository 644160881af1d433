# -*- coding: utf-8 -*-
from evalground.open_source_server import main

main()
