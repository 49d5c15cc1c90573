from gorevise.cli import main

raise SystemExit(main())
