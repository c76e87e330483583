from .simulation import main

main()
