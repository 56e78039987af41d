#!/usr/bin/env python
#    figgistest/resolvetest.py - test cases for Figgis member resolution
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
import unittest
from datetime import date, datetime, time
from decimal import Decimal

import figgis
from figgis import ( Member, ListOf, describe, lookup, resolve_type_name, resolve_member, resolve_item_name
    , element_name, kind_of, to_text, from_text, instantiate, ConversionError )
from figgistest import ( User, UserOptions, UserOptionsAdd, UserRequest, Manager, Moments, DataType
    , EquipmentType, ProgressStatus )

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"

class Unregistered ( object ) :
    pass

class SpecialOptions ( UserOptions ) :
    pass

class Arguments ( object ) :
    def __init__ ( self, required ) :
        self.required = required

class BindingTests ( unittest.TestCase ) :
    def testElementByDefault ( self ) :
        self.assertEqual( resolve_member( Member( 'Count', int ) ), ( figgis.ELEMENT, 'Count' ) )
        self.assertEqual( resolve_member( Member( 'Count', int, element = 'Total' ) ), ( figgis.ELEMENT, 'Total' ) )

    def testAttribute ( self ) :
        self.assertEqual( resolve_member( Member( 'Count', int, attribute = True ) ), ( figgis.ATTRIBUTE, 'Count' ) )
        self.assertEqual( resolve_member( Member( 'Count', int, attribute = 'n' ) ), ( figgis.ATTRIBUTE, 'n' ) )

    def testPrecedence ( self ) :
        """Attribute beats text, text beats element; ignore beats everything"""
        self.assertEqual( resolve_member( Member( 'X', str, attribute = True, text = True, element = 'Y' ) )[0], figgis.ATTRIBUTE )
        self.assertEqual( resolve_member( Member( 'X', str, text = True, element = 'Y' ) )[0], figgis.TEXT )
        self.assertEqual( resolve_member( Member( 'X', str, attribute = True, ignore = True ) )[0], figgis.IGNORE )

    def testCollectionsAreElements ( self ) :
        self.assertEqual( resolve_member( Member( 'Xs', ListOf( int ), attribute = True ) ), ( figgis.ELEMENT, 'Xs' ) )
        self.assertEqual( resolve_member( Member( 'Xs', ListOf( int ), text = True ) ), ( figgis.ELEMENT, 'Xs' ) )

    def testNestedCollection ( self ) :
        with self.assertRaises( TypeError ) :
            ListOf( ListOf( int ) )

    def testDescriptors ( self ) :
        members = describe( UserRequest ).members
        self.assertEqual( [ ( m.name, m.binding, m.xml_name ) for m in members ]
            , [ ( 'Id', figgis.ATTRIBUTE, 'id' ), ( 'Priority', figgis.ATTRIBUTE, 'Priority' )
                , ( 'Tag', figgis.ATTRIBUTE, 'Tag' ), ( 'Body', figgis.TEXT, 'Body' ) ] )

    def testMangledAttribute ( self ) :
        attrs = [ m.attr for m in describe( UserOptionsAdd ).members ]
        self.assertEqual( attrs, [ '_account_no', '_UserOptionsAdd__notice', '_send_device' ] )

    def testReadOnlyProperty ( self ) :
        summary = [ m for m in describe( Manager ).members if m.name == 'Summary' ][0]
        self.assertTrue( summary.readable )
        self.assertFalse( summary.writable )

    def testValueKinds ( self ) :
        kinds = dict( ( m.name, m.value_kind ) for m in describe( User ).members )
        self.assertEqual( kinds, { 'ConstractId' : figgis.SCALAR, 'ConstractType' : figgis.ENUM
            , 'UserRequest' : figgis.OBJECT, 'UserHistory' : figgis.OBJECT, 'UserOptions' : figgis.OBJECT
            , 'Cache' : figgis.OBJECT } )

class RegistryTests ( unittest.TestCase ) :
    def testUnregistered ( self ) :
        self.assertIsNone( lookup( Unregistered ) )
        with self.assertRaises( TypeError ) :
            describe( Unregistered )

    def testInherited ( self ) :
        """Subclasses share the metadata of their nearest described base"""
        self.assertIs( lookup( SpecialOptions ), describe( UserOptions ) )
        self.assertEqual( resolve_type_name( SpecialOptions ), 'Options' )

    def testUnsupportedKind ( self ) :
        with self.assertRaises( TypeError ) :
            describe( Unregistered, [ Member( 'Bad', "not a type" ) ] )

class NameTests ( unittest.TestCase ) :
    def testTypeName ( self ) :
        self.assertEqual( resolve_type_name( User ), 'User' )
        self.assertEqual( resolve_type_name( UserOptions ), 'Options' )
        self.assertEqual( resolve_type_name( int ), 'int' )

    def testItemName ( self ) :
        self.assertEqual( resolve_item_name( User ), 'User' )
        self.assertEqual( resolve_item_name( Manager ), 'Boss' )
        self.assertEqual( resolve_item_name( str ), 'str' )

    def testMemberItemName ( self ) :
        """A member's own item name beats the item type's"""
        notes = [ m for m in describe( Manager ).members if m.name == 'Notes' ][0]
        users = [ m for m in describe( Manager ).members if m.name == 'Users' ][0]
        self.assertEqual( notes.kind.item_element(), 'Note' )
        self.assertEqual( users.kind.item_element(), 'User' )
        self.assertEqual( ListOf( Manager ).item_element(), 'Boss' )
        self.assertEqual( ListOf( Manager, item_name = 'Chief' ).item_element(), 'Chief' )

    def testElementName ( self ) :
        """A type's root override replaces a member's element name"""
        self.assertEqual( element_name( UserOptions, 'UserOptions' ), 'Options' )
        self.assertEqual( element_name( UserRequest, 'Request' ), 'Request' )
        self.assertEqual( element_name( int, 'Count' ), 'Count' )

class ConversionTests ( unittest.TestCase ) :
    def testKinds ( self ) :
        self.assertEqual( kind_of( int ), figgis.SCALAR )
        self.assertEqual( kind_of( Decimal ), figgis.SCALAR )
        self.assertEqual( kind_of( DataType ), figgis.ENUM )
        self.assertEqual( kind_of( datetime ), figgis.DATE )
        self.assertEqual( kind_of( time ), figgis.DATE )
        self.assertEqual( kind_of( ListOf( int ) ), figgis.LIST )
        self.assertEqual( kind_of( User ), figgis.OBJECT )

    def testToText ( self ) :
        self.assertEqual( to_text( True ), 'True' )
        self.assertEqual( to_text( 0.1 ), '0.1' )
        self.assertEqual( to_text( Decimal( "1.10" ) ), '1.10' )
        self.assertEqual( to_text( EquipmentType.PowerUser ), 'PowerUser' )
        self.assertEqual( to_text( date( 2001, 2, 3 ) ), '2001-02-03' )
        self.assertEqual( to_text( None ), '' )

    def testBool ( self ) :
        self.assertIs( from_text( 'True', bool ), True )
        self.assertIs( from_text( 'false', bool ), False )
        self.assertIs( from_text( ' 1 ', bool ), True )
        with self.assertRaises( ConversionError ) :
            from_text( 'yes', bool )

    def testNumbers ( self ) :
        self.assertEqual( from_text( ' -42 ', int ), -42 )
        self.assertEqual( from_text( '1e-300', float ), 1e-300 )
        self.assertEqual( from_text( '(20+0.3j)', complex ), complex( 20, 0.3 ) )
        with self.assertRaises( ConversionError ) :
            from_text( 'forty', int )
        with self.assertRaises( ConversionError ) :
            from_text( 'x', Decimal )

    def testStringsKeepWhitespace ( self ) :
        self.assertEqual( from_text( '  padded ', str ), '  padded ' )

    def testEnum ( self ) :
        self.assertIs( from_text( 'Completed', ProgressStatus ), ProgressStatus.Completed )
        self.assertIs( from_text( 'COMPLETED', ProgressStatus ), ProgressStatus.Completed )
        self.assertIs( from_text( '1', ProgressStatus ), ProgressStatus.InProgress )
        with self.assertRaises( ConversionError ) :
            from_text( 'Abandoned', ProgressStatus )
        with self.assertRaises( ConversionError ) :
            from_text( '9', ProgressStatus )

    def testDates ( self ) :
        self.assertEqual( from_text( '2025-10-26T12:30:45', datetime ), datetime( 2025, 10, 26, 12, 30, 45 ) )
        self.assertEqual( from_text( '1999-12-31', date ), date( 1999, 12, 31 ) )
        with self.assertRaises( ConversionError ) :
            from_text( 'yesterday', date )

class InstantiateTests ( unittest.TestCase ) :
    def testDefaultConstructor ( self ) :
        self.assertEqual( repr( instantiate( Moments ) ), repr( Moments() ) )

    def testConstructorArguments ( self ) :
        result = instantiate( Arguments )
        self.assertIsInstance( result, Arguments )
        self.assertFalse( hasattr( result, 'required' ) )

if __name__ == "__main__":
    unittest.main()
