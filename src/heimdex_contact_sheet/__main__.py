from heimdex_contact_sheet.cli import main

main()
