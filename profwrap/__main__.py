from profwrap.main import main

main()
