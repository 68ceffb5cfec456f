from tagsmith.cli.main import main

main()
