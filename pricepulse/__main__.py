from pricepulse.main import main

main()
