from gh_subissue.main import main

raise SystemExit(main())
