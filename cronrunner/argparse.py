def addArgumentParserBaseFlags(parser, logfileName):
    '''
    Creates a Base argument parser, which should be used for all
    scripts included with cronrunner.
    Provides common flags for config file overrides, etc.

    Provides ALL flags required by the Config class.
    '''
    parser.add_argument(
        "-v",
        dest="verbose",
        help="Increase verbosity (with --list, show the full last result)",
        action="append_const",
        const=1)
    parser.add_argument(
        "--store-path",
        dest='storePath',
        metavar="DIR",
        help="Directory holding the run store and processing flag, overrides "
        "the rc file")
    parser.add_argument("--rc-file", dest="rcFile",
                        help="Specify path to rc-file (default=\"%(default)s\")",
                        default="~/.config/cronrunnerrc")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug output to <store-path>/%s" % logfileName)
