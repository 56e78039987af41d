import enum, unittest
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from figgis import Member, ListOf, marshalled, describe

class DefaultTestCase(unittest.TestCase):
    def _perform( self, data, expected = None ) :
        if expected is None :
            expected = data
        _marshal = self.marshal( data )
        result = self.unmarshal( _marshal, type( data ) )
        if ( repr(result) != repr( expected ) ) :
            print( ">>", expected )
            print( "<<", result )
        assert ( repr( result ) == repr( expected ) )
        return result

    def runTest( self ) :
        pass

class FiggisTests( DefaultTestCase ) :
    def testPrimitives ( self ) :
        """Test the marshalling of simple primitives"""
        data = Primitives( True, -42, 3.25, Decimal( "1.10" ), complex( 20, 0.3 ), "string" )
        self._perform( data )

    def testFloatPrecision ( self ) :
        data = Primitives( number = 0.1 + 0.2, ratio = 1e-300 )
        self._perform( data )

    def testEnum ( self ) :
        data = UserHistory( status = EquipmentType.PowerUser, before = EquipmentType.Development )
        self._perform( data )

    def testDates ( self ) :
        """Test datetimes (naive and aware), dates and times"""
        data = Moments( datetime( 2025, 10, 26, 12, 30, 45, 123456 )
            , datetime( 2025, 5, 5, 8, 0, tzinfo = timezone( timedelta( hours = 9 ) ) )
            , date( 1999, 12, 31 ), time( 23, 59, 1 ) )
        self._perform( data )

    def testObjectWithChild ( self ) :
        """Test object with objects as members"""
        data = User( 7, DataType.TypeC )
        self._perform( data )

    def testCollections ( self ) :
        data = UserOptions( friends = [ 3, 1, 2 ], blocked = [ 99 ] )
        self._perform( data )

    def testEmptyCollection ( self ) :
        data = UserOptions( friends = [], blocked = [] )
        self._perform( data )

    def testObjectCollection ( self ) :
        data = Manager( [ User( 1, DataType.TypeA ), User( 2, DataType.TypeD ) ], [ "a", "", "c" ] )
        self._perform( data )

    def testPrivateMembers ( self ) :
        """Members bound to private and name-mangled attributes"""
        data = UserOptionsAdd( 5678, "changed", ProgressStatus.Completed )
        self._perform( data )

    def testEmptyString ( self ) :
        """An empty string member reads back empty, not as its constructor default"""
        data = UserOptionsAdd( 1, "", ProgressStatus.Completed )
        result = self._perform( data )
        assert ( result._UserOptionsAdd__notice == "" )

    def testEmptyTextAndAttribute ( self ) :
        data = UserRequest( 4, 1, "", tag = "" )
        self._perform( data )

    def testAttributesAndText ( self ) :
        data = UserRequest( 12, 3, "please call back" )
        self._perform( data )

    def testEscape ( self ) :
        """Markup, quotes and line breaks in text and attributes"""
        data = UserRequest( 1, 2, "<&>\r\n\"line\"\n\tend", tag = "a\"b'c\r\nd\te<" )
        self._perform( data )

    def testMissingChild ( self ) :
        """A None child is written empty and read back as the default"""
        data = UserOptions( add = None )
        self._perform( data, UserOptions() )

    def testReadOnlyProperty ( self ) :
        """Read-only properties are written but not read back"""
        data = Manager( [], [ "x" ] )
        result = self._perform( data )
        assert ( result.summary == "0 users" )

    def testIgnored ( self ) :
        data = User( 3, DataType.TypeB )
        data.cache = { "scratch" : 1 }
        result = self._perform( data, User( 3, DataType.TypeB ) )
        assert ( result.cache == {} )

    def testRootOverride ( self ) :
        data = UserOptions( call = True )
        self._perform( data )

class DataType ( enum.Enum ) :
    TypeA = 0
    TypeB = 1
    TypeC = 2
    TypeD = 3

class EquipmentType ( enum.Enum ) :
    Development = 0
    Operator = 1
    PowerUser = 2
    User = 3

class ProgressStatus ( enum.Enum ) :
    NotStarted = 0
    InProgress = 1
    Completed = 2

@marshalled( Member( 'Flag', bool, attr = 'flag' ), Member( 'Count', int, attr = 'count' )
    , Member( 'Number', float, attr = 'number' ), Member( 'Amount', Decimal, attr = 'amount' )
    , Member( 'Complex', complex, attr = 'complex' ), Member( 'Label', str, attr = 'label' )
    , Member( 'Ratio', float, attr = 'ratio' ) )
class Primitives ( object ) :
    def __init__ ( self, flag = False, count = 0, number = 0.0, amount = Decimal( 0 ), complex = 0j, label = "", ratio = 1.0 ) :
        self.flag = flag
        self.count = count
        self.number = number
        self.amount = amount
        self.complex = complex
        self.label = label
        self.ratio = ratio
    def __repr__ ( self ) :
        return "<Primitives: %r>" % ( self.__dict__, )

@marshalled( Member( 'Started', datetime, attr = 'started' ), Member( 'Stamped', datetime, attr = 'stamped' )
    , Member( 'Day', date, attr = 'day' ), Member( 'At', time, attr = 'at' ) )
class Moments ( object ) :
    def __init__ ( self, started = datetime.min, stamped = datetime.min, day = date.min, at = time.min ) :
        self.started = started
        self.stamped = stamped
        self.day = day
        self.at = at
    def __repr__ ( self ) :
        return "<Moments: %r>" % ( self.__dict__, )

@marshalled( Member( 'UserAccountNo', int, attr = '_account_no' )
    , Member( 'NoticeMessage', str, attr = '__notice' )
    , Member( 'SendDeviceId', ProgressStatus, attr = '_send_device' ) )
class UserOptionsAdd ( object ) :
    def __init__ ( self, account_no = 1234, notice = "initialized.", send_device = ProgressStatus.NotStarted ) :
        self._account_no = account_no
        self.__notice = notice
        self._send_device = send_device
    def __repr__ ( self ) :
        return "<UserOptionsAdd: %d, %r, %s>" % ( self._account_no, self.__notice, self._send_device )

@marshalled( Member( 'OperatorCall', bool, attr = '_call' ), Member( 'OperationStatus', int, attr = '_status' )
    , Member( 'FriendAccountNoList', ListOf( int ), attr = '_friends' )
    , Member( 'BlockAccountNoList', ListOf( int ), attr = '_blocked' )
    , Member( 'OptionsAdd', UserOptionsAdd, attr = '_add' ), root = 'Options' )
class UserOptions ( object ) :
    def __init__ ( self, call = False, status = 0, friends = None, blocked = None, add = UserOptionsAdd ) :
        self._call = call
        self._status = status
        self._friends = friends if friends is not None else []
        self._blocked = blocked if blocked is not None else []
        self._add = UserOptionsAdd() if add is UserOptionsAdd else add
    @property
    def operator_call ( self ) :
        return self._call
    def __repr__ ( self ) :
        return "<UserOptions: %r, %r, %r, %r, %r>" % ( self._call, self._status, self._friends, self._blocked, self._add )

@marshalled( Member( 'EquipStatus', EquipmentType, attr = '_status' )
    , Member( 'EquipStatusBefore', EquipmentType, attr = '_before' )
    , Member( 'LoginTime', datetime, attr = '_login' ), Member( 'IsLogin', bool, attr = '_logged_in' ) )
class UserHistory ( object ) :
    def __init__ ( self, status = EquipmentType.Operator, before = EquipmentType.PowerUser, login = datetime.min, logged_in = False ) :
        self._status = status
        self._before = before
        self._login = login
        self._logged_in = logged_in
    def __repr__ ( self ) :
        return "<UserHistory: %s, %s, %r, %r>" % ( self._status, self._before, self._login, self._logged_in )

@marshalled( Member( 'Id', int, attr = 'request_id', attribute = 'id' ), Member( 'Priority', int, attr = 'priority', attribute = True )
    , Member( 'Tag', str, attr = 'tag', attribute = True ), Member( 'Body', str, attr = 'body', text = True ) )
class UserRequest ( object ) :
    def __init__ ( self, request_id = 0, priority = 0, body = "", tag = "" ) :
        self.request_id = request_id
        self.priority = priority
        self.body = body
        self.tag = tag
    def __repr__ ( self ) :
        return "<UserRequest: %r, %r, %r, %r>" % ( self.request_id, self.priority, self.tag, self.body )

@marshalled( Member( 'ConstractId', int, attr = 'id', attribute = True ), Member( 'ConstractType', DataType, attr = 'type' )
    , Member( 'UserRequest', UserRequest, attr = 'request' ), Member( 'UserHistory', UserHistory, attr = 'history' )
    , Member( 'UserOptions', UserOptions, attr = 'options' ), Member( 'Cache', dict, attr = 'cache', ignore = True ) )
class User ( object ) :
    def __init__ ( self, id = -1, type = DataType.TypeA ) :
        self.id = id
        self.type = type
        self.request = UserRequest()
        self.history = UserHistory()
        self.options = UserOptions()
        self.cache = {}
    def __repr__ ( self ) :
        return "<User: %r, %s, %r, %r, %r>" % ( self.id, self.type, self.request, self.history, self.options )

class Manager ( object ) :
    def __init__ ( self, users = None, notes = None ) :
        self.users = users if users is not None else []
        self.notes = notes if notes is not None else []
    @property
    def summary ( self ) :
        return "%d users" % len( self.users )
    def __repr__ ( self ) :
        return "<Manager: %r, %r>" % ( self.users, self.notes )

# registered after definition, the way types from elsewhere are described
describe( Manager, [ Member( 'Users', ListOf( User ), attr = 'users' )
    , Member( 'Notes', ListOf( str, item_name = 'Note' ), attr = 'notes' )
    , Member( 'Summary', str, attr = 'summary' ) ], item = 'Boss' )
