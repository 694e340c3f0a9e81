from .sprites import main

main()
