#!/usr/bin/env python
#    figgistest/xmltest.py - test cases for Figgis over XML
#    Copyright (C) 2009 Shawn Sulma <genosha@470th.org>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, either version 3 of the License, or
#    (at your option) any later version.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <http://www.gnu.org/licenses/>.
import io, unittest
import xml.etree.ElementTree as ET

from figgis import Member, ListOf, marshalled, ElementNameMismatch, ConversionError, ParseError
from figgis.XML import dumps, loads, dump, load, marshal, tostring, XMLReader, XMLWriter
import figgistest
from figgistest import User, UserOptions, UserOptionsAdd, UserRequest, Manager, DataType, ProgressStatus

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"

class FiggisXMLTests ( figgistest.FiggisTests ) :
    def setUp ( self ) :
        self.marshal = dumps
        self.unmarshal = loads

class FiggisFileObjectTests ( figgistest.FiggisTests ) :
    def setUp ( self ) :
        self.marshal = self._dump
        self.unmarshal = lambda text, kind : load( io.BytesIO( text.encode( 'utf-8' ) ), kind )

    def _dump ( self, value ) :
        f = io.StringIO()
        dump( value, f )
        return f.getvalue()

@marshalled( Member( 'Numbers', ListOf( int, item_name = 'Item' ), attr = 'numbers' ) )
class Sequence ( object ) :
    def __init__ ( self, numbers = None ) :
        self.numbers = numbers if numbers is not None else []

@marshalled( Member( 'Before', int, attr = 'before' ), Member( 'Failing', int, attr = 'failing' )
    , Member( 'After', int, attr = 'after' ) )
class Broken ( object ) :
    def __init__ ( self ) :
        self.before = 1
        self.after = 2
    @property
    def failing ( self ) :
        raise RuntimeError( "unavailable" )

@marshalled( Member( 'Hidden', str, attr = 'hidden', readable = False ), Member( 'Shown', str, attr = 'shown', writable = False ) )
class Gated ( object ) :
    def __init__ ( self ) :
        self.hidden = "hidden"
        self.shown = "shown"

class DocumentShapeTests ( unittest.TestCase ) :
    def testRootEnvelope ( self ) :
        """The value is always wrapped in an outer element of the same name"""
        root = marshal( User( 4, DataType.TypeB ) ).getroot()
        self.assertEqual( root.tag, 'User' )
        self.assertEqual( [ child.tag for child in root ], [ 'User' ] )
        self.assertEqual( root[0].get( 'ConstractId' ), '4' )

    def testRootOverride ( self ) :
        root = marshal( UserOptions() ).getroot()
        self.assertEqual( root.tag, 'Options' )
        self.assertEqual( root[0].tag, 'Options' )

    def testNestedRootOverride ( self ) :
        """A nested type's root name replaces the member's element name"""
        inner = marshal( User() ).getroot()[0]
        self.assertEqual( [ child.tag for child in inner ], [ 'ConstractType', 'UserRequest', 'UserHistory', 'Options' ] )

    def testMemberOrder ( self ) :
        inner = marshal( UserOptions() ).getroot()[0]
        self.assertEqual( [ child.tag for child in inner ]
            , [ 'OperatorCall', 'OperationStatus', 'FriendAccountNoList', 'BlockAccountNoList', 'OptionsAdd' ] )

    def testCollectionItems ( self ) :
        """[1,2,3] bound as 'Item' becomes three sibling <Item> elements, in order"""
        wrapper = marshal( Sequence( [ 1, 2, 3 ] ) ).getroot()[0].find( 'Numbers' )
        self.assertEqual( [ item.tag for item in wrapper ], [ 'Item', 'Item', 'Item' ] )
        self.assertEqual( [ item.text for item in wrapper ], [ '1', '2', '3' ] )
        self.assertEqual( loads( dumps( Sequence( [ 1, 2, 3 ] ) ), Sequence ).numbers, [ 1, 2, 3 ] )

    def testItemNames ( self ) :
        """Items are named by type, or by the type's item override"""
        inner = marshal( Manager( [ User( 1, DataType.TypeA ) ], [ "n" ] ) ).getroot()
        self.assertEqual( inner.tag, 'Manager' )
        self.assertEqual( [ item.tag for item in inner[0].find( 'Users' ) ], [ 'User' ] )
        self.assertEqual( [ item.tag for item in inner[0].find( 'Notes' ) ], [ 'Note' ] )
        boss = marshal( Team( [ Manager() ] ) ).getroot()[0].find( 'Managers' )
        self.assertEqual( [ item.tag for item in boss ], [ 'Boss' ] )
        self.assertEqual( repr( loads( dumps( Team( [ Manager( [], [ "x" ] ) ] ) ), Team ).managers ), repr( [ Manager( [], [ "x" ] ) ] ) )

    def testAttributeAndText ( self ) :
        inner = marshal( UserRequest( 8, 2, "body text", tag = "t" ) ).getroot()[0]
        self.assertEqual( dict( inner.attrib ), { 'id' : '8', 'Priority' : '2', 'Tag' : 't' } )
        self.assertEqual( inner.text, "body text" )
        self.assertEqual( len( inner ), 0 )

    def testIgnored ( self ) :
        inner = marshal( User() ).getroot()[0]
        self.assertIsNone( inner.find( 'Cache' ) )

    def testReadableGate ( self ) :
        inner = marshal( Gated() ).getroot()[0]
        self.assertIsNone( inner.find( 'Hidden' ) )
        self.assertEqual( inner.find( 'Shown' ).text, 'shown' )

    def testWritableGate ( self ) :
        text = '<Gated><Gated><Hidden>from file</Hidden><Shown>from file</Shown></Gated></Gated>'
        result = loads( text, Gated )
        self.assertEqual( result.hidden, "from file" )
        self.assertEqual( result.shown, "shown" )

    def testIndentation ( self ) :
        text = dumps( Sequence( [ 1 ] ) )
        self.assertEqual( text.splitlines(), [ '<?xml version="1.0" encoding="utf-8"?>'
            , '<Sequence>', '  <Sequence>', '    <Numbers>', '      <Item>1</Item>', '    </Numbers>'
            , '  </Sequence>', '</Sequence>' ] )

    def testLineBreaksEscaped ( self ) :
        text = dumps( UserRequest( 1, 1, "one\r\ntwo", tag = "x\ny" ) )
        self.assertIn( 'one&#xD;&#xA;two', text )
        self.assertIn( 'Tag="x&#xA;y"', text )
        self.assertEqual( len( text.splitlines() ), 4 )

    def testMixedContent ( self ) :
        element = ET.Element( 'a' )
        element.text = "x"
        ET.SubElement( element, 'b' ).tail = "y"
        self.assertEqual( tostring( element ), '<a>x<b />y</a>' )

    def testEmptyElements ( self ) :
        inner = marshal( UserOptions( add = None ) ).getroot()[0]
        self.assertEqual( len( inner.find( 'OptionsAdd' ) ), 0 )
        self.assertIn( '<OptionsAdd />', dumps( UserOptions( add = None ) ) )

class ReaderTests ( unittest.TestCase ) :
    def testEmptyElementKeepsDefault ( self ) :
        """Reading <Options/> hands back the default, unchanged"""
        default = UserOptions( call = False )
        reader = XMLReader( ET.fromstring( '<Options/>' ) )
        result = reader.read_object( 'Options', default, UserOptions )
        self.assertIs( result, default )
        self.assertFalse( result.operator_call )
        self.assertIsNone( reader.move_to_element() )

    def testElementNameMismatch ( self ) :
        reader = XMLReader( ET.fromstring( '<Foo><Bar>1</Bar></Foo>' ) )
        with self.assertRaises( ElementNameMismatch ) as raised :
            reader.read_object( 'Bar', None, UserOptions )
        self.assertEqual( raised.exception.found, 'Foo' )
        self.assertEqual( raised.exception.expected, 'Bar' )
        self.assertEqual( reader.move_to_element().tag, 'Foo' )

    def testEnvelopeMismatch ( self ) :
        with self.assertRaises( ElementNameMismatch ) :
            loads( dumps( User() ), UserOptions )

    def testEmptyEnvelope ( self ) :
        result = loads( '<Options/>', UserOptions )
        self.assertEqual( repr( result ), repr( UserOptions() ) )

    def testEnumIgnoresCase ( self ) :
        text = ( '<UserOptionsAdd><UserOptionsAdd><UserAccountNo>1</UserAccountNo>'
            '<NoticeMessage>m</NoticeMessage><SendDeviceId>inprogress</SendDeviceId></UserOptionsAdd></UserOptionsAdd>' )
        self.assertEqual( repr( loads( text, UserOptionsAdd ) ), repr( UserOptionsAdd( 1, "m", ProgressStatus.InProgress ) ) )

    def testBadMemberKeepsValue ( self ) :
        """A member that cannot be converted keeps its value; the rest are still read"""
        text = ( '<Options><Options><OperatorCall>maybe</OperatorCall><OperationStatus>5</OperationStatus>'
            '<FriendAccountNoList><int>1</int><int>x</int></FriendAccountNoList></Options></Options>' )
        result = loads( text, UserOptions )
        self.assertFalse( result.operator_call )
        self.assertEqual( result._status, 5 )
        self.assertEqual( result._friends, [ 1, None ] )

    def testBadItemKeepsPosition ( self ) :
        """An item that cannot be converted is read as empty; the rest of the list survives"""
        text = ( '<Sequence><Sequence><Numbers><Item>1</Item><Item>x</Item><Item>3</Item></Numbers>'
            '</Sequence></Sequence>' )
        self.assertEqual( loads( text, Sequence ).numbers, [ 1, None, 3 ] )
        with self.assertRaises( ConversionError ) :
            loads( text, Sequence, strict = True )

    def testEmptyStringElement ( self ) :
        inner = marshal( UserOptionsAdd( 1, "", ProgressStatus.NotStarted ) ).getroot()[0]
        self.assertIsNone( inner.find( 'NoticeMessage' ).text )
        text = '<UserOptionsAdd><UserOptionsAdd><NoticeMessage/></UserOptionsAdd></UserOptionsAdd>'
        self.assertEqual( repr( loads( text, UserOptionsAdd ) ), repr( UserOptionsAdd( notice = "" ) ) )

    def testStrictRaises ( self ) :
        text = '<Options><Options><OperatorCall>maybe</OperatorCall></Options></Options>'
        with self.assertRaises( ConversionError ) :
            loads( text, UserOptions, strict = True )

    def testMissingMembers ( self ) :
        """Members absent from the document keep their values"""
        text = '<Options><Options><OperationStatus>9</OperationStatus></Options></Options>'
        result = loads( text, UserOptions )
        self.assertEqual( repr( result ), repr( UserOptions( status = 9 ) ) )

    def testUnknownElements ( self ) :
        """Elements the type does not declare are skipped"""
        text = ( '<Options><Options><Added>1</Added><OperatorCall>true</OperatorCall><Other/>'
            '<OperationStatus>4</OperationStatus><Trailing>z</Trailing></Options></Options>' )
        result = loads( text, UserOptions )
        self.assertEqual( repr( result ), repr( UserOptions( call = True, status = 4 ) ) )

    def testNamespacePassThrough ( self ) :
        text = '<Options xmlns="urn:figgis"><Options><OperationStatus>3</OperationStatus></Options></Options>'
        self.assertEqual( loads( text, UserOptions )._status, 3 )

    def testComments ( self ) :
        text = '<!-- saved --><Options><!-- note --><Options><OperationStatus>2</OperationStatus></Options></Options>'
        self.assertEqual( loads( text, UserOptions )._status, 2 )

    def testMalformed ( self ) :
        with self.assertRaises( ParseError ) :
            loads( '<Options><Options>', UserOptions )

    def testConstructorWithArguments ( self ) :
        """Types whose constructor takes arguments are still created"""
        result = loads( '<Needy><Needy Name="n"/></Needy>', Needy )
        self.assertEqual( result.name, "n" )

class WriterTests ( unittest.TestCase ) :
    def testFailingMemberWrittenEmpty ( self ) :
        inner = marshal( Broken() ).getroot()[0]
        self.assertEqual( [ child.tag for child in inner ], [ 'Before', 'Failing', 'After' ] )
        self.assertIsNone( inner.find( 'Failing' ).text )
        self.assertEqual( inner.find( 'After' ).text, '2' )

    def testStrictRaises ( self ) :
        with self.assertRaises( AttributeError ) :
            marshal( Broken(), strict = True )

    def testUnregisteredType ( self ) :
        with self.assertRaises( TypeError ) :
            XMLWriter().write( object() )

@marshalled( Member( 'Managers', ListOf( Manager ), attr = 'managers' ) )
class Team ( object ) :
    def __init__ ( self, managers = None ) :
        self.managers = managers if managers is not None else []

@marshalled( Member( 'Name', str, attr = 'name', attribute = True ) )
class Needy ( object ) :
    def __init__ ( self, name ) :
        self.name = name

if __name__ == "__main__":
    unittest.main()
